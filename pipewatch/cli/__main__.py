"""Allow ``python -m pipewatch.cli``."""

from pipewatch.cli.main import main

main()
