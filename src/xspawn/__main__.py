"""Allow ``python -m xspawn``."""

from xspawn.cli import cli

if __name__ == "__main__":
    cli()
