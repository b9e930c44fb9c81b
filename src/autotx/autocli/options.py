"""Command descriptors — how a service is exposed as a command tree.

Sparse contract: every option has a default, so a module only declares the
service it binds and the per-method overrides it needs.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from autotx.errors import ConfigurationError


class FlagOptions(BaseModel):
    """Override for the flag generated from one input field."""

    model_config = {"frozen": True}

    name: str = ""
    shorthand: str = ""
    usage: str = ""
    default_value: str = ""
    hidden: bool = False


class RpcCommandOptions(BaseModel):
    """Per-method overrides, matched to a method by exact name."""

    model_config = {"frozen": True}

    rpc_method: str = ""
    use: str = ""
    long: str = ""
    short: str = ""
    example: str = ""
    alias: tuple[str, ...] = ()
    deprecated: str = ""
    skip: bool = False
    gov_proposal: bool = False
    positional_args: tuple[str, ...] = ()
    flag_options: dict[str, FlagOptions] = Field(default_factory=dict)


class ServiceCommandDescriptor(BaseModel):
    """A node in the command descriptor tree, optionally bound to a service."""

    model_config = {"frozen": True}

    service: str = ""
    short: str = ""
    rpc_command_options: tuple[RpcCommandOptions, ...] = ()
    sub_commands: dict[str, ServiceCommandDescriptor] = Field(default_factory=dict)
    enhance_custom_command: bool = False


class ModuleOptions(BaseModel):
    """Command descriptors contributed by one application module."""

    model_config = {"frozen": True}

    tx: ServiceCommandDescriptor | None = None


class AppOptions(BaseModel):
    """Module name -> options for the whole application."""

    model_config = {"frozen": True}

    module_options: dict[str, ModuleOptions] = Field(default_factory=dict)

    def merged(self, other: AppOptions) -> AppOptions:
        """Return options where *other*'s modules replace same-named ones here."""
        return AppOptions(module_options={**self.module_options, **other.module_options})

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, source: str = "<dict>") -> AppOptions:
        """Build from the ``modules`` table of a schema file."""
        try:
            return cls(module_options=data.get("modules", {}))
        except ValidationError as exc:
            raise ConfigurationError(
                f"invalid module options in {source}: {exc}", source=source
            ) from exc
