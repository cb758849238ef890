"""Entry point for ``python -m testplane``."""

from testplane.cli.main import cli

if __name__ == "__main__":
    cli()
