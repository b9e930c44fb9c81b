"""Custom Click base classes with --examples, alias and quiet-usage support.

Provides TxCommand and TxGroup that accept an ``examples`` parameter.
When ``--examples`` is passed, the command prints usage examples and exits.
Commands may also carry ``aliases`` (resolved by the parent TxGroup) and
``silence_usage``, which drops the usage block from error output.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class TxCommand(click.Command):
    """Click Command subclass with ``--examples``, aliases and quiet usage errors."""

    def __init__(
        self,
        *args: Any,
        examples: str | None = None,
        aliases: Sequence[str] = (),
        silence_usage: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        self.aliases = tuple(aliases)
        self.silence_usage = silence_usage
        if examples:
            _add_examples_option(self, examples)

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            if self.silence_usage:
                exc.ctx = None
            raise

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except click.UsageError as exc:
            if self.silence_usage:
                exc.ctx = None
            raise


class TxGroup(click.Group):
    """Click Group subclass that supports ``--examples`` and command aliases.

    Sets ``command_class = TxCommand`` so all subcommands automatically
    accept the ``examples`` parameter without explicit ``cls=`` each time.
    """

    command_class = TxCommand

    def __init__(
        self,
        *args: Any,
        examples: str | None = None,
        aliases: Sequence[str] = (),
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        self.aliases = tuple(aliases)
        if examples:
            _add_examples_option(self, examples)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        cmd = super().get_command(ctx, cmd_name)
        if cmd is not None:
            return cmd
        for candidate in self.commands.values():
            if cmd_name in getattr(candidate, "aliases", ()):
                return candidate
        return None
