# File: crudsmith/__main__.py
"""
crudsmith - Module entry point.

Allows running the generator directly via::

    python -m crudsmith make BlogPost --fields "title:string,body:text"

This module simply delegates to the CLI entry point defined in ``crudsmith.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from crudsmith.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
