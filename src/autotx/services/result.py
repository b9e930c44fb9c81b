"""ServiceResult and ServiceError — the universal result contract.

INVARIANT: Every command invocation ends in exactly one ServiceResult.
The CLI renders it; plugins and tests consume it directly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from autotx.errors import AutoTxError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: AutoTxError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=exc.detail)


class ServiceResult(BaseModel):
    """Universal return type for command operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"generate_tx"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (method name, proposal flag, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: AutoTxError) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc))
