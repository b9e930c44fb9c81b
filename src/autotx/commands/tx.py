"""Command group: ``autotx tx`` — transaction commands built from schemas.

The tree is synthesized on first lookup, after the root callback has
created the :class:`AppContext`, so ``autotx --help`` never loads schemas
or plugins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from autotx.commands._base import TxGroup
from autotx.commands._context import AppContext
from autotx.errors import ConfigurationError

if TYPE_CHECKING:
    from autotx.autocli.builder import Builder


def make_builder(app: AppContext) -> Builder:
    """A :class:`Builder` wired to *app*'s schemas, codecs and config."""
    from autotx.autocli.builder import Builder

    return Builder(
        registry=app.registry,
        codecs=app.codecs,
        app_versions=dict(app.settings.chain.app_versions),
        accounts=dict(app.settings.accounts),
    )


def build_tx_tree(app: AppContext) -> click.Group:
    """Build the ``tx`` tree with hand-written commands taking precedence.

    Plugin contributions override the built-in hand-written commands of
    the same module name.
    """
    from autotx.commands.bank import bank

    custom: dict[str, click.Command] = {"bank": bank}
    custom.update(app.plugins.collect_tx_commands())
    return make_builder(app).build_msg_command(app.app_options, custom)


class TxRootGroup(TxGroup):
    """``tx`` group whose children come from :func:`build_tx_tree`."""

    def _tree(self, ctx: click.Context) -> click.Group:
        app = AppContext.from_click(ctx)
        if app.tx_tree is None:
            try:
                app.tx_tree = build_tx_tree(app)
            except ConfigurationError as exc:
                raise click.ClickException(f"invalid tx configuration: {exc.message}") from exc
        return app.tx_tree

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(self._tree(ctx).commands)

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return self._tree(ctx).get_command(ctx, cmd_name)


def _make_tx(**kwargs: Any) -> TxRootGroup:
    return TxRootGroup(
        name="tx",
        help="Transaction subcommands.",
        examples="""\
  autotx tx bank send alice cosmos1... 10stake --generate-only
  autotx tx gov vote 42 VOTE_OPTION_YES --from alice
  autotx tx bank update-params --params '{"default_send_enabled": true}' --title "Enable sends"
  autotx tx bank update-params --no-proposal --authority cosmos1... --generate-only""",
        **kwargs,
    )


tx = _make_tx()
