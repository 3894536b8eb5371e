# File: docschema/__main__.py
"""
docschema — Module entry point.

Allows running the generator directly via::

    python -m docschema -c docschema.yaml -s samples.json -o ./schema
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from docschema.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
