"""Bech32 address codecs.

Three codecs share one human-readable prefix family:

- account:   ``<prefix>``         (e.g. ``cosmos1...``)
- validator: ``<prefix>valoper``  (e.g. ``cosmosvaloper1...``)
- consensus: ``<prefix>valcons``  (e.g. ``cosmosvalcons1...``)

Module accounts have no key; their address is the first 20 bytes of
SHA-256 over the module name.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Protocol

from bech32 import bech32_decode, bech32_encode, convertbits

from autotx.errors import ResolutionError

MODULE_ADDRESS_LEN = 20


class AddressCodec(Protocol):
    """Converts raw address bytes to and from their string form."""

    def bytes_to_string(self, raw: bytes) -> str: ...

    def string_to_bytes(self, text: str) -> bytes: ...


class Bech32Codec:
    """Bech32 codec bound to one human-readable part."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def __repr__(self) -> str:
        return f"Bech32Codec({self.prefix!r})"

    def bytes_to_string(self, raw: bytes) -> str:
        if not raw:
            raise ResolutionError("empty address bytes", prefix=self.prefix)
        if len(raw) > 255:
            raise ResolutionError(
                f"address {raw.hex()} exceeds 255 bytes", address=raw.hex(), prefix=self.prefix
            )
        data = convertbits(raw, 8, 5)
        if data is None:
            raise ResolutionError(f"cannot convert address {raw.hex()}", address=raw.hex())
        return bech32_encode(self.prefix, data)

    def string_to_bytes(self, text: str) -> bytes:
        if not text.strip():
            raise ResolutionError("empty address string", prefix=self.prefix)
        hrp, data = bech32_decode(text)
        if hrp is None or data is None:
            raise ResolutionError(f"invalid bech32 address {text!r}", address=text)
        if hrp != self.prefix:
            raise ResolutionError(
                f"invalid address prefix {hrp!r} in {text!r}, expected {self.prefix!r}",
                address=text,
                prefix=self.prefix,
            )
        raw = convertbits(data, 5, 8, False)
        if raw is None:
            raise ResolutionError(f"invalid bech32 payload in {text!r}", address=text)
        return bytes(raw)


@dataclass(frozen=True)
class AddressCodecs:
    """The account, validator and consensus codecs of one chain."""

    account: AddressCodec
    validator: AddressCodec
    consensus: AddressCodec

    @classmethod
    def from_prefix(cls, prefix: str) -> AddressCodecs:
        return cls(
            account=Bech32Codec(prefix),
            validator=Bech32Codec(f"{prefix}valoper"),
            consensus=Bech32Codec(f"{prefix}valcons"),
        )


def module_address(name: str) -> bytes:
    """Deterministic address of the module account *name*."""
    return hashlib.sha256(name.encode("utf-8")).digest()[:MODULE_ADDRESS_LEN]
