"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from autotx.output.console import create_console, get_output

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from autotx.services.result import ServiceResult


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    txhash = result.data.get("txhash")
    if txhash:
        return str(txhash)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="tx.ok")
    op = Text(f"  {result.op}", style="tx.op")
    console.print(label, op, sep="", end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="tx.key")
    if key.endswith("address") or key in ("signer", "proposer", "authority"):
        v = Text(str(value), style="tx.address")
    elif key == "txhash":
        v = Text(str(value), style="tx.hash")
    elif isinstance(value, (dict, list)):
        v = Text(json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, sep="", end="")
    console.print()


def _render_warnings(console: Console, result: ServiceResult) -> None:
    for warning in result.warnings:
        console.print(Text(f"  WARNING: {warning}", style="tx.warning"))


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


# ── Renderers ─────────────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    _render_warnings(console, result)
    if verbose:
        _render_meta(console, result)


def _render_generate_tx(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Unsigned transaction: header fields plus one table row per message."""
    _status_line(console, result)
    tx = result.data.get("tx", {})
    body = tx.get("body", {})
    auth_info = tx.get("auth_info", {})
    for key in ("chain_id", "signer"):
        if tx.get(key):
            _field(console, key, tx[key])
    fee = auth_info.get("fee", {})
    _field(console, "gas_limit", fee.get("gas_limit", 0))
    if fee.get("amount"):
        _field(console, "fees", fee["amount"])
    if body.get("memo"):
        _field(console, "memo", body["memo"])

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("#", justify="right")
    table.add_column("Type", style="tx.type")
    table.add_column("Value")
    for idx, msg in enumerate(body.get("messages", []), start=1):
        payload = {k: v for k, v in msg.items() if k != "@type"}
        table.add_row(str(idx), msg.get("@type", "?"), json.dumps(payload, separators=(",", ":")))
    console.print(table)
    _render_warnings(console, result)
    if verbose:
        _render_meta(console, result)


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    label = Text("ERROR", style="tx.error")
    op = Text(f"  {result.op}", style="tx.op")
    console.print(label, op, sep="", end="")
    console.print()
    if result.error is not None:
        console.print(f"  {result.error.message}")
        if verbose and result.error.detail:
            for k, v in result.error.detail.items():
                _field(console, k, v)


_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "generate_tx": _render_generate_tx,
}
