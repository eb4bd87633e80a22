"""Comparison core."""
