"""Caller-side run lifecycle: stepping, instant mode, reset and clear."""
