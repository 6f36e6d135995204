"""Standard adapters shipped with pipewatch."""
