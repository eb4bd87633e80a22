"""Primary storage benchmark tool."""
