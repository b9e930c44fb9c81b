"""Subcommand modules for autotx.

Provides register_commands() which uses deferred imports to keep
``autotx --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups on the root CLI group."""
    from autotx.commands.tx import tx

    cli.add_command(tx)
