"""SchemaRegistry — process-wide lookup of message and service descriptors.

Resolved once at startup and read-only afterwards.  Schemas come from the
built-in module definitions and from optional TOML/JSON schema files::

    [[messages]]
    full_name = "example.v1.MsgPing"
    signers = ["sender"]
    fields = [
      { name = "sender", kind = "string", scalar = "cosmos.AddressString" },
    ]

    [[services]]
    full_name = "example.v1.Msg"

    [[services.methods]]
    name = "Ping"
    input_type = "example.v1.MsgPing"
    output_type = "example.v1.MsgPingResponse"
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from autotx.errors import ConfigurationError, DescriptorNotFoundError
from autotx.schema.descriptors import FieldKind, MessageDescriptor, ServiceDescriptor
from autotx.schema.message import DynamicMessage

if TYPE_CHECKING:
    from autotx.schema.concrete import ConcreteMessage

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Maps full names to frozen message and service descriptors."""

    def __init__(self) -> None:
        self._messages: dict[str, MessageDescriptor] = {}
        self._services: dict[str, ServiceDescriptor] = {}
        self._concrete: dict[str, type[ConcreteMessage]] = {}
        self._building: set[str] = set()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_message(self, descriptor: MessageDescriptor) -> None:
        """Add a message descriptor; re-registering an identical one is a no-op."""
        existing = self._messages.get(descriptor.full_name)
        if existing is not None:
            if existing == descriptor:
                return
            raise ConfigurationError(
                f"message {descriptor.full_name} is already registered with a different shape",
                message=descriptor.full_name,
            )
        self._messages[descriptor.full_name] = descriptor

    def register_service(self, descriptor: ServiceDescriptor) -> None:
        """Add a service descriptor, binding its methods to the service name."""
        bound = descriptor.bound()
        existing = self._services.get(bound.full_name)
        if existing is not None and existing != bound:
            raise ConfigurationError(
                f"service {bound.full_name} is already registered with different methods",
                service=bound.full_name,
            )
        self._services[bound.full_name] = bound

    def load_dict(self, data: dict[str, Any], *, source: str = "<dict>") -> None:
        """Register every message and service found in a schema mapping."""
        try:
            messages = [MessageDescriptor.model_validate(m) for m in data.get("messages", [])]
            services = [ServiceDescriptor.model_validate(s) for s in data.get("services", [])]
        except ValidationError as exc:
            raise ConfigurationError(f"invalid schema in {source}: {exc}", source=source) from exc
        for message in messages:
            self.register_message(message)
        for service in services:
            self.register_service(service)
        logger.debug(
            "Loaded schema from %s: %d messages, %d services", source, len(messages), len(services)
        )

    def load_schema_file(self, path: Path) -> dict[str, Any]:
        """Load a ``.toml`` or ``.json`` schema file into the registry.

        Returns the parsed document so callers can read extra tables.
        """
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(
                f"cannot read schema file {path}: {exc}", source=str(path)
            ) from exc
        try:
            data = json.loads(raw) if path.suffix == ".json" else tomllib.loads(raw)
        except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
            raise ConfigurationError(
                f"invalid schema file {path}: {exc}", source=str(path)
            ) from exc
        self.load_dict(data, source=str(path))
        return data

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_service_by_name(self, full_name: str) -> ServiceDescriptor:
        try:
            return self._services[full_name]
        except KeyError:
            raise DescriptorNotFoundError(
                f"can't find service {full_name}", service=full_name
            ) from None

    def find_message_by_name(self, full_name: str) -> MessageDescriptor:
        try:
            return self._messages[full_name]
        except KeyError:
            raise DescriptorNotFoundError(
                f"can't find message {full_name}", message=full_name
            ) from None

    def service_names(self) -> list[str]:
        return sorted(self._services)

    def new_message(self, full_name: str) -> DynamicMessage:
        """Create an empty :class:`DynamicMessage` of type *full_name*."""
        return DynamicMessage(self.find_message_by_name(full_name), self)

    def concrete_type(self, full_name: str) -> type[ConcreteMessage]:
        """Return the cached concrete model class for *full_name*."""
        cached = self._concrete.get(full_name)
        if cached is not None:
            return cached
        if full_name in self._building:
            raise ConfigurationError(
                f"recursive message type {full_name} has no concrete model", message=full_name
            )
        from autotx.schema.concrete import build_concrete_type

        self._building.add(full_name)
        try:
            model = build_concrete_type(self.find_message_by_name(full_name), self)
        finally:
            self._building.discard(full_name)
        self._concrete[full_name] = model
        return model

    def validate(self) -> None:
        """Check that every referenced message type is registered and that no
        message type contains itself.

        Raises :class:`ConfigurationError` on the first dangling reference or
        cycle.
        """
        for message in self._messages.values():
            for field in message.fields:
                if field.kind == FieldKind.MESSAGE and field.message_type not in self._messages:
                    raise ConfigurationError(
                        f"field {message.full_name}.{field.name} references "
                        f"unknown message {field.message_type}",
                        message=message.full_name,
                    )
        for service in self._services.values():
            for method in service.methods:
                for type_name in (method.input_type, method.output_type):
                    if type_name not in self._messages:
                        raise ConfigurationError(
                            f"method {method.full_name} references unknown message {type_name}",
                            service=service.full_name,
                            method=method.name,
                        )
        self._check_acyclic()

    def _check_acyclic(self) -> None:
        """Reject message types that contain themselves, directly or not."""
        done: set[str] = set()

        def visit(full_name: str, path: list[str]) -> None:
            if full_name in path:
                cycle = " -> ".join([*path[path.index(full_name) :], full_name])
                raise ConfigurationError(
                    f"recursive message types are not supported: {cycle}", message=full_name
                )
            if full_name in done:
                return
            for field in self._messages[full_name].fields:
                if field.kind == FieldKind.MESSAGE and field.message_type is not None:
                    visit(field.message_type, [*path, full_name])
            done.add(full_name)

        for full_name in self._messages:
            visit(full_name, [])
