"""Utility helpers shared across YouCra modules."""
