"""Allow ``python -m pipewatch``."""

from pipewatch.cli.main import main

main()
