"""Command line interface for densestack."""
