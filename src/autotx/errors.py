"""Error taxonomy for command synthesis and submission.

Every error carries a stable ``code`` so the command boundary can turn it
into a failed :class:`~autotx.services.result.ServiceResult` without
inspecting the message text.
"""

from __future__ import annotations

from typing import Any


class AutoTxError(Exception):
    """Base class for all autotx errors."""

    code = "AUTOTX_ERROR"

    def __init__(self, message: str, /, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ConfigurationError(AutoTxError):
    """Invalid schema or command descriptor, detected at tree-build time."""

    code = "CONFIG_ERROR"


class DescriptorNotFoundError(ConfigurationError):
    """A service or message name is not present in the schema registry."""

    code = "DESCRIPTOR_NOT_FOUND"


class ResolutionError(AutoTxError):
    """An address could not be converted by its codec."""

    code = "RESOLUTION_ERROR"


class TransformationError(AutoTxError):
    """Flag values or proposal contents could not be turned into a message."""

    code = "TRANSFORMATION_ERROR"


class BridgeError(AutoTxError):
    """A message could not cross the wire encoding between representations."""

    code = "BRIDGE_ERROR"


class SubmissionError(AutoTxError):
    """The transaction pipeline rejected or failed to deliver a transaction."""

    code = "SUBMISSION_ERROR"
