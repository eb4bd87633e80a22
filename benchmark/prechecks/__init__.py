"""Checks that run before any workload."""
