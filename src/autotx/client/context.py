"""ClientContext — the ambient submission context of one tx invocation.

Built from the transaction connection flags (``--from``, ``--chain-id``,
``--fees`` ...) layered over the ``[tx]`` and ``[chain]`` config sections.
It carries the acting account, the output stream and a cancellation event
that the broadcaster honors.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TextIO

import click

from autotx.client.coins import parse_coins
from autotx.errors import ResolutionError, TransformationError

if TYPE_CHECKING:
    from autotx.commands._context import AppContext
    from autotx.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

FLAG_FROM = "tx_from"
FLAG_CHAIN_ID = "tx_chain_id"
FLAG_FEES = "tx_fees"
FLAG_GAS = "tx_gas"
FLAG_NOTE = "tx_note"
FLAG_TIMEOUT_HEIGHT = "tx_timeout_height"
FLAG_GENERATE_ONLY = "tx_generate_only"
FLAG_BROADCAST_MODE = "tx_broadcast_mode"

TX_FLAG_NAMES = frozenset(
    {
        FLAG_FROM,
        FLAG_CHAIN_ID,
        FLAG_FEES,
        FLAG_GAS,
        FLAG_NOTE,
        FLAG_TIMEOUT_HEIGHT,
        FLAG_GENERATE_ONLY,
        FLAG_BROADCAST_MODE,
    }
)


def add_tx_flags(cmd: click.Command) -> None:
    """Attach the transaction connection flags to *cmd*.

    Unset values fall back to the ``[tx]`` config section.
    """
    cmd.params.extend(
        [
            click.Option(
                ["--from", FLAG_FROM],
                default=None,
                help="Account key name (from [accounts]) or address signing the tx.",
            ),
            click.Option(["--chain-id", FLAG_CHAIN_ID], default=None, help="Target chain ID."),
            click.Option(["--fees", FLAG_FEES], default=None, help="Fees to pay, e.g. 10stake."),
            click.Option(
                ["--gas", FLAG_GAS], type=click.IntRange(min=1), default=None, help="Gas limit."
            ),
            click.Option(["--note", FLAG_NOTE], default="", help="Memo attached to the tx."),
            click.Option(
                ["--timeout-height", FLAG_TIMEOUT_HEIGHT],
                type=click.IntRange(min=0),
                default=0,
                help="Block height after which the tx is invalid.",
            ),
            click.Option(
                ["--generate-only", FLAG_GENERATE_ONLY],
                is_flag=True,
                help="Print the unsigned tx instead of broadcasting it.",
            ),
            click.Option(
                ["--broadcast-mode", FLAG_BROADCAST_MODE],
                type=click.Choice(["sync", "async"]),
                default=None,
                help="Broadcast mode.",
            ),
        ]
    )


@dataclass
class ClientContext:
    """Everything the signer logic and the pipeline need from the environment."""

    from_address: bytes
    from_name: str = ""
    chain_id: str = ""
    output: TextIO | None = None
    gas: int = 200_000
    fees: list[dict[str, str]] = field(default_factory=list)
    note: str = ""
    timeout_height: int = 0
    generate_only: bool = False
    broadcast_mode: str = "sync"
    plugins: PluginManager | None = None
    cancelled: threading.Event = field(default_factory=threading.Event)

    def get_from_address(self) -> bytes:
        return self.from_address


def resolve_from(app: AppContext, value: str) -> tuple[str, bytes]:
    """Resolve ``--from`` to ``(name, raw address)``.

    *value* is an ``[accounts]`` key name or a bech32 account address.
    """
    if not value:
        raise ResolutionError("no signing account: pass --from or set [tx] default_from")
    name = ""
    address = value
    if value in app.settings.accounts:
        name = value
        address = app.settings.accounts[value]
    try:
        raw = app.codecs.account.string_to_bytes(address)
    except ResolutionError as exc:
        raise ResolutionError(
            f"cannot resolve --from {value!r}: {exc.message}", address=address
        ) from exc
    return name, raw


def get_client_tx_context(ctx: click.Context, params: dict[str, Any]) -> ClientContext:
    """Build the :class:`ClientContext` for the current invocation."""
    from autotx.commands._context import AppContext

    app = AppContext.from_click(ctx)
    tx_config = app.settings.tx

    from_value = params.get(FLAG_FROM) or tx_config.default_from
    name, raw = resolve_from(app, from_value)

    fees_text = params.get(FLAG_FEES)
    if fees_text is None:
        fees_text = tx_config.fees
    try:
        fees = parse_coins(fees_text)
    except ValueError as exc:
        raise TransformationError(f"invalid --fees: {exc}", fees=fees_text) from exc

    client_ctx = ClientContext(
        from_address=raw,
        from_name=name,
        chain_id=params.get(FLAG_CHAIN_ID) or app.settings.chain.chain_id,
        output=click.get_text_stream("stdout"),
        gas=params.get(FLAG_GAS) or tx_config.gas,
        fees=fees,
        note=params.get(FLAG_NOTE) or "",
        timeout_height=params.get(FLAG_TIMEOUT_HEIGHT) or 0,
        generate_only=bool(params.get(FLAG_GENERATE_ONLY)) or tx_config.generate_only,
        broadcast_mode=params.get(FLAG_BROADCAST_MODE) or tx_config.broadcast_mode,
        plugins=app.plugins,
    )
    ctx.call_on_close(client_ctx.cancelled.set)
    logger.debug("Client context ready: from=%s chain_id=%s", from_value, client_ctx.chain_id)
    return client_ctx
