"""
STI Builder - Main entry point

Allows running the CLI with ``python -m stibuilder``.
"""

from .cli import cli

if __name__ == "__main__":
    cli()
