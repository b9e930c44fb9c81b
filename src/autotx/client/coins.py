"""Coin parsing — ``10stake,5uatom`` style amounts."""

from __future__ import annotations

import re

COIN_PATTERN = re.compile(r"^(\d+)([a-zA-Z][a-zA-Z0-9/:._-]{2,127})$")


def parse_coin(text: str) -> dict[str, str]:
    """Parse a single ``<amount><denom>`` string into a Coin mapping."""
    match = COIN_PATTERN.match(text.strip())
    if match is None:
        raise ValueError(f"invalid coin expression {text!r}")
    amount, denom = match.groups()
    return {"denom": denom, "amount": str(int(amount))}


def parse_coins(text: str) -> list[dict[str, str]]:
    """Parse a comma-separated coin list, sorted by denom.

    An empty string yields an empty list.  Duplicate denoms are rejected.
    """
    if not text.strip():
        return []
    coins = [parse_coin(part) for part in text.split(",") if part.strip()]
    denoms = [c["denom"] for c in coins]
    if len(denoms) != len(set(denoms)):
        raise ValueError(f"duplicate denomination in {text!r}")
    return sorted(coins, key=lambda c: c["denom"])
