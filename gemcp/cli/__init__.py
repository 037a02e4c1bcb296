"""gemcp command-line interface."""
