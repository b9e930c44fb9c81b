"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, autotx.toml only contains overrides.
A fresh setup needs only [chain] chain_id and one [accounts] entry.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ChainConfig(BaseModel):
    """[chain] section."""

    model_config = {"frozen": True}

    chain_id: str = ""
    bech32_prefix: str = "cosmos"
    # module -> running version, consulted for methods declaring ``since``
    app_versions: dict[str, str] = Field(default_factory=lambda: {"cosmos-sdk": "0.50.0"})

    @field_validator("bech32_prefix")
    @classmethod
    def _lowercase_prefix(cls, value: str) -> str:
        if not value or value != value.lower():
            raise ValueError("bech32_prefix must be a non-empty lowercase string")
        return value


class TxConfig(BaseModel):
    """[tx] section."""

    model_config = {"frozen": True}

    default_from: str = ""
    gas: int = 200_000
    fees: str = ""
    broadcast_mode: Literal["sync", "async"] = "sync"
    generate_only: bool = False


class SchemaConfig(BaseModel):
    """[schemas] section."""

    model_config = {"frozen": True}

    include_builtin: bool = True
    files: list[str] = Field(default_factory=list)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str = ".autotx/plugins"
