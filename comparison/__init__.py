"""Multi-run comparison tool."""
