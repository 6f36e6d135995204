"""Command line interface for pipewatch."""
