"""Command-line entry points for ios_scale."""
