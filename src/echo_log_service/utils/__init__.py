"""Utility helpers: ids, timestamps, context rendering and errors."""
