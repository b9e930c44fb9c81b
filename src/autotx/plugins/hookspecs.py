"""Pluggy hook specifications for autotx.

Two hooks: one submits generated transactions, one contributes
hand-written tx commands that take precedence over generated ones.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    import click

    from autotx.services.tx import UnsignedTx

hookspec = pluggy.HookspecMarker("autotx")
hookimpl = pluggy.HookimplMarker("autotx")


class AutoTxHookSpec:
    """Hook specifications for the autotx plugin system."""

    @hookspec(firstresult=True)
    def broadcast_tx(
        self,
        tx: UnsignedTx,
        chain_id: str,
        mode: str,
        cancelled: threading.Event,
    ) -> dict[str, Any] | None:
        """Sign and submit *tx*; return at least ``{"txhash": ...}``.

        Return None to let the next plugin handle it.  A non-zero ``code``
        in the response marks the tx as failed on chain.
        """

    @hookspec
    def register_tx_commands(self) -> dict[str, click.Command] | None:
        """Return module name -> hand-written tx command."""
