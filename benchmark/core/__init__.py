"""Benchmark orchestration core."""
