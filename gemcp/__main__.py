"""Allow ``python -m gemcp``."""

from gemcp.cli.main import main

main()
