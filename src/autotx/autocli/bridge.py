"""Message bridge — dynamic messages to concrete models via the wire encoding.

The two representations never exchange field values directly: the source
is serialized to canonical wire bytes and the destination is parsed from
them.  The wire encoding is the only contract both sides share.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError

from autotx.errors import BridgeError

if TYPE_CHECKING:
    from autotx.schema.concrete import ConcreteMessage
    from autotx.schema.descriptors import MessageDescriptor
    from autotx.schema.registry import SchemaRegistry


class WireMessage(Protocol):
    descriptor: MessageDescriptor

    def marshal(self) -> bytes: ...


def unmarshal[M: ConcreteMessage](raw: bytes, target: type[M]) -> M:
    """Parse canonical wire bytes into a new *target* instance."""
    try:
        return target.unmarshal(raw)
    except ValidationError as exc:
        raise BridgeError(
            f"failed to parse {target.descriptor.full_name} from wire bytes: {exc}",
            message=target.descriptor.full_name,
        ) from exc


def bridge_message(src: WireMessage, registry: SchemaRegistry) -> ConcreteMessage:
    """Re-create *src* as the concrete model generated from its own descriptor."""
    full_name = src.descriptor.full_name
    try:
        raw = src.marshal()
    except (TypeError, ValueError) as exc:
        raise BridgeError(f"failed to marshal {full_name}: {exc}", message=full_name) from exc
    return unmarshal(raw, registry.concrete_type(full_name))
