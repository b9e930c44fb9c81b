"""Schema layer — message and service descriptors, registry, message models.

This layer depends only on stdlib and pydantic.
It must never import from autocli, commands, or config.
"""

from autotx.schema.descriptors import (
    FieldDescriptor,
    FieldKind,
    MessageDescriptor,
    MethodDescriptor,
    ScalarType,
    ServiceDescriptor,
)
from autotx.schema.message import DynamicMessage
from autotx.schema.registry import SchemaRegistry

__all__ = [
    "DynamicMessage",
    "FieldDescriptor",
    "FieldKind",
    "MessageDescriptor",
    "MethodDescriptor",
    "ScalarType",
    "SchemaRegistry",
    "ServiceDescriptor",
]
