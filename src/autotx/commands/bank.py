"""Command group: hand-written bank transactions.

``send`` takes the sender as its first argument instead of ``--from``.
The remaining ``cosmos.bank.v1beta1.Msg`` methods are generated into this
group because the bank module options set ``enhance_custom_command``.
"""

from __future__ import annotations

from typing import Any

import click

from autotx.client.context import FLAG_FROM, add_tx_flags, get_client_tx_context
from autotx.commands._base import TxGroup
from autotx.commands._context import AppContext
from autotx.errors import AutoTxError, TransformationError
from autotx.services.result import ServiceResult

MSG_SEND = "cosmos.bank.v1beta1.MsgSend"


@click.group(
    cls=TxGroup,
    examples="""\
  autotx tx bank send alice cosmos1... 10stake,5atom --generate-only
  autotx tx bank update-params --params '{"default_send_enabled": false}'""",
)
def bank() -> None:
    """Bank transaction subcommands."""


@bank.command(
    examples="""\
  autotx tx bank send alice cosmos1... 10stake
  autotx tx bank send cosmos1... cosmos1... 10stake --chain-id testnet --fees 500stake""",
    silence_usage=True,
)
@click.argument("from_key")
@click.argument("to_address")
@click.argument("amount")
@click.pass_context
def send(
    ctx: click.Context, from_key: str, to_address: str, amount: str, **tx_params: Any
) -> None:
    """Send funds from one account to another.

    FROM_KEY is an [accounts] key name or an address and replaces --from.
    AMOUNT is a comma-separated coin list such as 10stake,5atom.
    """
    from autotx.autocli.bridge import bridge_message
    from autotx.client.coins import parse_coins
    from autotx.services.tx import generate_or_broadcast_tx

    app = AppContext.from_click(ctx)
    tx_params[FLAG_FROM] = from_key
    try:
        client_ctx = get_client_tx_context(ctx, tx_params)
        sender = app.codecs.account.bytes_to_string(client_ctx.get_from_address())
        recipient = app.settings.accounts.get(to_address, to_address)
        app.codecs.account.string_to_bytes(recipient)
        try:
            coins = parse_coins(amount)
        except ValueError as exc:
            raise TransformationError(f"invalid amount: {exc}", amount=amount) from exc
        if not coins:
            raise TransformationError("amount must not be empty")

        msg = app.registry.new_message(MSG_SEND)
        try:
            msg.update({"from_address": sender, "to_address": recipient, "amount": coins})
        except (TypeError, ValueError) as exc:
            raise TransformationError(f"invalid send: {exc}") from exc
        result = generate_or_broadcast_tx(client_ctx, sender, bridge_message(msg, app.registry))
    except AutoTxError as exc:
        result = ServiceResult.failure("send", exc)
    app.emit(result)


add_tx_flags(send)
