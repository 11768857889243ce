"""
A* Animation Demo - Watch the search expand one step per animation frame.

Shows:
- Open set (nodes to be explored) in green
- Closed set (already explored) in red
- Current node being processed in yellow
- Final path in cyan

The animation timer is the scheduling loop: every frame calls
PathfindingSession.tick() once. With --instant the search finishes before
the window opens and only the result is drawn.

Usage:
    python examples/astar_demo.py --size 30 --walls 0.25 --seed 7
    python examples/astar_demo.py --diag --instant
"""

import argparse
import logging
import os
import sys

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from astar_grid.environment.grid_world import GRID_SIZE, GridWorld
from astar_grid.simulation.session import DEFAULT_SPEED, PathfindingSession


def build_scenario(size: int, wall_density: float, seed: int) -> GridWorld:
    """Random walls plus a long barrier with a single gap."""
    grid = GridWorld(width=size)
    rng = np.random.default_rng(seed)
    grid.scatter_walls(wall_density, rng=rng)

    barrier_y = size // 2
    grid.add_obstacle(0, barrier_y, width=size, height=1)
    grid.erase_wall(max(size - 3, 0), barrier_y)
    return grid


def animate(session: PathfindingSession, figsize=(10, 10), save_file=None):
    """
    Drive the session from a matplotlib timer and draw every step.

    Args:
        session: Session that has not been started yet
        figsize: Figure size in inches
        save_file: Optional filename to save animation (e.g., 'astar.gif')
    """
    world = session.grid_world
    fig, ax = plt.subplots(figsize=figsize)

    ax.imshow(world.grid, cmap='Greys', origin='upper', vmin=0, vmax=1,
              interpolation='nearest')
    open_scatter = ax.scatter([], [], c='lightgreen', s=30, alpha=0.6, label='Open Set')
    closed_scatter = ax.scatter([], [], c='salmon', s=20, alpha=0.6, label='Closed Set')
    current_scatter = ax.scatter([], [], c='yellow', s=100, marker='o',
                                 edgecolors='orange', linewidths=2, label='Current')
    ax.plot(*world.start, 'gs', markersize=12, label='Start')
    ax.plot(*world.end, 'rs', markersize=12, label='End')
    path_line, = ax.plot([], [], 'c-', linewidth=3, alpha=0.9, label='Path')

    ax.set_xticks(np.arange(-0.5, world.width, 1), minor=True)
    ax.set_yticks(np.arange(-0.5, world.height, 1), minor=True)
    ax.grid(which='minor', color='gray', linestyle='-', linewidth=0.5, alpha=0.2)
    title = ax.set_title('A* Search', fontsize=14, fontweight='bold')
    ax.legend(loc='upper right', fontsize=9)
    ax.set_aspect('equal')

    def offsets(coords):
        return np.array(coords, dtype=float) if coords else np.empty((0, 2))

    def draw(frame):
        open_scatter.set_offsets(offsets(frame.open_set))
        closed_scatter.set_offsets(offsets(frame.closed_set))
        current_scatter.set_offsets(offsets([frame.current] if frame.current else []))

    def draw_outcome():
        outcome = session.outcome
        if outcome.found:
            path_line.set_data([p[0] for p in outcome.path], [p[1] for p in outcome.path])
            title.set_text(f'Path found: {len(outcome.path)} cells, cost {outcome.cost:.2f}')
        else:
            title.set_text(outcome.message)

    def update(_):
        if session.running:
            result = session.tick()
            draw(session.frames[-1] if session.frames else session.snapshot(result.current))
            if not session.running:
                draw_outcome()
            else:
                title.set_text(f'A* Search - step {session.state.steps}')
        return open_scatter, closed_scatter, current_scatter, path_line, title

    def frames():
        # Keep yielding until the search ends, then hold the result briefly
        count = 0
        while session.running:
            yield count
            count += 1
        for _ in range(30):
            yield count

    session.start_run()
    if session.instant:
        draw(session.snapshot())
        draw_outcome()
        plt.tight_layout()
        plt.show()
        return

    anim = FuncAnimation(fig, update, frames=frames, interval=max(session.step_delay_ms, 1),
                         blit=False, repeat=False, cache_frame_data=False)
    if save_file:
        print(f"Saving animation to {save_file}...")
        anim.save(save_file, writer='pillow', fps=20)
        print("✓ Animation saved!")

    plt.tight_layout()
    plt.show()


def int_in_range(low, high=None):
    """argparse type for an integer within [low, high]."""
    def parse(text):
        value = int(text)
        if value < low or (high is not None and value > high):
            bound = f"[{low}, {high}]" if high is not None else f">= {low}"
            raise argparse.ArgumentTypeError(f"{value} is not {bound}")
        return value
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Animated A* grid search")
    parser.add_argument('--size', type=int_in_range(3), default=GRID_SIZE,
                        help="grid width and height (at least 3)")
    parser.add_argument('--walls', type=float, default=0.2, help="random wall density")
    parser.add_argument('--seed', type=int, default=0)
    parser.add_argument('--diag', action='store_true',
                        help="allow diagonal moves between two walls")
    parser.add_argument('--instant', action='store_true', help="skip the step animation")
    parser.add_argument('--speed', type=int_in_range(0, 100), default=DEFAULT_SPEED,
                        help="0-100")
    parser.add_argument('--save', default=None, help="save animation to this file")
    parser.add_argument('--log-level', default='INFO')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(),
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    print("=" * 70)
    print("A* SEARCH ANIMATION DEMO")
    print("=" * 70)

    grid = build_scenario(args.size, args.walls, args.seed)
    print(f"\n{grid}")

    session = PathfindingSession(grid, allow_diagonal=args.diag, instant=args.instant,
                                 speed=args.speed)
    animate(session, save_file=args.save)

    outcome = session.outcome
    if outcome and outcome.found:
        print(f"\n✓ Path found: {len(outcome.path)} cells, cost {outcome.cost:.2f}, "
              f"{outcome.expansions} expansions")
    elif outcome:
        print(f"\n❌ {outcome.message}")


if __name__ == "__main__":
    main()
