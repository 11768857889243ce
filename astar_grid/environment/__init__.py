"""Passability grid the search runs on."""
