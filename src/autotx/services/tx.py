"""Transaction pipeline — build an unsigned tx and generate or broadcast it.

Signing and transport are not done here.  With ``--generate-only`` the
unsigned transaction is returned for display; otherwise it is handed to
the first plugin implementing the ``broadcast_tx`` hook.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, Field

from autotx.errors import SubmissionError
from autotx.services.result import ServiceResult

if TYPE_CHECKING:
    from autotx.client.context import ClientContext

logger = logging.getLogger(__name__)


class TxMessage(Protocol):
    """Anything the pipeline can put in a tx body."""

    @classmethod
    def type_url(cls) -> str: ...

    def to_dict(self) -> dict[str, Any]: ...


class Fee(BaseModel):
    amount: list[dict[str, str]] = Field(default_factory=list)
    gas_limit: int


class AuthInfo(BaseModel):
    fee: Fee


class TxBody(BaseModel):
    messages: list[dict[str, Any]]
    memo: str = ""
    timeout_height: int = 0


class UnsignedTx(BaseModel):
    """Unsigned transaction document handed to broadcasters."""

    body: TxBody
    auth_info: AuthInfo
    chain_id: str = ""
    signer: str = ""


def build_unsigned_tx(client_ctx: ClientContext, signer: str, *msgs: TxMessage) -> UnsignedTx:
    """Assemble the tx body and fee from the client context."""
    return UnsignedTx(
        body=TxBody(
            messages=[{"@type": m.type_url(), **m.to_dict()} for m in msgs],
            memo=client_ctx.note,
            timeout_height=client_ctx.timeout_height,
        ),
        auth_info=AuthInfo(fee=Fee(amount=client_ctx.fees, gas_limit=client_ctx.gas)),
        chain_id=client_ctx.chain_id,
        signer=signer,
    )


class TxPipeline(Protocol):
    """Callable that submits a fully-formed message or proposal."""

    def __call__(
        self, client_ctx: ClientContext, signer: str, msg: TxMessage
    ) -> ServiceResult: ...


def generate_or_broadcast_tx(
    client_ctx: ClientContext, signer: str, msg: TxMessage
) -> ServiceResult:
    """Generate the unsigned tx, or broadcast it through a plugin.

    Raises :class:`SubmissionError` when broadcasting is requested but no
    broadcaster is registered, or the broadcaster fails.
    """
    tx = build_unsigned_tx(client_ctx, signer, msg)
    meta = {"type_url": msg.type_url()}

    if client_ctx.generate_only:
        logger.debug("Generated unsigned tx for %s", msg.type_url())
        return ServiceResult(
            ok=True, op="generate_tx", data={"tx": tx.model_dump(mode="json")}, meta=meta
        )

    if client_ctx.plugins is None:
        raise SubmissionError("no broadcaster available; use --generate-only")
    if not client_ctx.chain_id:
        raise SubmissionError("--chain-id is required to broadcast")

    try:
        response = client_ctx.plugins.hook.broadcast_tx(
            tx=tx,
            chain_id=client_ctx.chain_id,
            mode=client_ctx.broadcast_mode,
            cancelled=client_ctx.cancelled,
        )
    except SubmissionError:
        raise
    except Exception as exc:
        raise SubmissionError(f"broadcast failed: {exc}", chain_id=client_ctx.chain_id) from exc

    if response is None:
        raise SubmissionError("no broadcaster plugin registered; use --generate-only")
    if not isinstance(response, dict) or "txhash" not in response:
        raise SubmissionError(f"broadcaster returned an invalid response: {response!r}")
    code = int(response.get("code", 0))
    if code != 0:
        raise SubmissionError(
            f"tx {response['txhash']} failed with code {code}: {response.get('raw_log', '')}",
            txhash=response["txhash"],
            code=code,
        )
    logger.info("Broadcast %s as %s", msg.type_url(), response["txhash"])
    return ServiceResult(ok=True, op="broadcast_tx", data=dict(response), meta=meta)
