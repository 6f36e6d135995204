"""pipewatch kernel: domain models, ports and the sync engine."""
