"""Builder — synthesizes the ``tx`` command tree from service descriptors.

Tree merge precedence has a single rule, implemented by
:func:`merge_command`: a command already occupying a name wins, and a
generated command is only attached to a free slot.  Hand-written trees
passed to :meth:`Builder.build_msg_command` are copied first, so the
caller's objects are never mutated.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import click

from autotx.autocli.bridge import bridge_message
from autotx.autocli.flags import build_message_params, decode_message, kebab
from autotx.autocli.options import AppOptions, RpcCommandOptions, ServiceCommandDescriptor
from autotx.autocli.signer import SignerField, resolve_signer
from autotx.autocli.version import is_supported_version
from autotx.client.context import add_tx_flags, get_client_tx_context
from autotx.commands._base import TxCommand, TxGroup
from autotx.errors import AutoTxError, ConfigurationError, ResolutionError
from autotx.gov.proposal import add_gov_prop_flags, gov_authority, read_gov_prop_flags
from autotx.services.result import ServiceResult
from autotx.services.tx import generate_or_broadcast_tx

if TYPE_CHECKING:
    from autotx.address.codec import AddressCodecs
    from autotx.client.context import ClientContext
    from autotx.schema.descriptors import MethodDescriptor
    from autotx.schema.message import DynamicMessage
    from autotx.schema.registry import SchemaRegistry
    from autotx.services.tx import TxPipeline

logger = logging.getLogger(__name__)

FLAG_NO_PROPOSAL = "no_proposal"

TX_FLAGS = frozenset(
    {
        "from",
        "chain-id",
        "fees",
        "gas",
        "note",
        "timeout-height",
        "generate-only",
        "broadcast-mode",
        "examples",
        "help",
    }
)
GOV_FLAGS = frozenset({"title", "summary", "metadata", "deposit", "expedited", "no-proposal"})


# ── Tree helpers ──────────────────────────────────────────────────────


def top_level_group(name: str, short: str) -> TxGroup:
    """An empty group that prints its help when invoked without a subcommand."""
    return TxGroup(name=name, help=short, short_help=short)


def find_sub_command(cmd: click.Command, name: str) -> click.Command | None:
    if not isinstance(cmd, click.Group):
        return None
    return cmd.commands.get(name)


def merge_command(parent: click.Group, child: click.Command) -> click.Command:
    """Attach *child* to *parent* unless the name is taken.

    Returns the command occupying the slot afterwards: the existing one
    when present (no warning, overriding a generated command is expected),
    otherwise *child*.
    """
    assert child.name is not None
    existing = parent.commands.get(child.name)
    if existing is not None:
        return existing
    parent.add_command(child)
    return child


def copy_command_tree(cmd: click.Command) -> click.Command:
    """Copy group nodes so new children can be added without touching *cmd*.

    Leaf commands are shared.
    """
    if not isinstance(cmd, click.Group):
        return cmd
    clone = copy.copy(cmd)
    clone.commands = {name: copy_command_tree(child) for name, child in cmd.commands.items()}
    return clone


def command_paths(cmd: click.Command, prefix: tuple[str, ...] = ()) -> set[tuple[str, ...]]:
    """Every reachable command path below *cmd* (excluding *cmd* itself)."""
    paths: set[tuple[str, ...]] = set()
    if isinstance(cmd, click.Group):
        for name, child in cmd.commands.items():
            path = (*prefix, name)
            paths.add(path)
            paths |= command_paths(child, path)
    return paths


# ── Builder ───────────────────────────────────────────────────────────


@dataclass
class Builder:
    """Builds tx commands from the schema registry.

    Attributes:
        registry: Source of service and message descriptors.
        codecs: Account, validator and consensus address codecs.
        app_versions: Running module versions for ``since`` gating.
        accounts: Key name -> address, accepted wherever an address is.
        tx_pipeline: Receives the final message or proposal.
        add_tx_conn_flags: Attaches connection flags to each method command.
        client_context: Builds the ambient context for an invocation.
    """

    registry: SchemaRegistry
    codecs: AddressCodecs
    app_versions: dict[str, str] = field(default_factory=dict)
    accounts: Mapping[str, str] = field(default_factory=dict)
    tx_pipeline: TxPipeline = generate_or_broadcast_tx
    add_tx_conn_flags: Callable[[click.Command], None] | None = add_tx_flags
    client_context: Callable[[click.Context, dict[str, Any]], ClientContext] = (
        get_client_tx_context
    )

    def build_msg_command(
        self,
        app_options: AppOptions,
        custom_cmds: Mapping[str, click.Command] | None = None,
    ) -> click.Group:
        """Build the ``tx`` root for every module in *app_options*.

        A module with a hand-written command keeps it; the generated
        commands are added into it only when its descriptor sets
        ``enhance_custom_command``.
        """
        msg_cmd = top_level_group("tx", "Transaction subcommands")
        custom = {name: copy_command_tree(cmd) for name, cmd in (custom_cmds or {}).items()}

        for module_name in sorted(set(app_options.module_options) | set(custom)):
            module_opts = app_options.module_options.get(module_name)
            descriptor = module_opts.tx if module_opts is not None else None
            existing = custom.get(module_name)

            if existing is not None:
                if descriptor is not None and descriptor.enhance_custom_command:
                    if isinstance(existing, click.Group):
                        self.add_msg_service_commands(existing, descriptor)
                merge_command(msg_cmd, existing)
                continue

            if descriptor is None:
                continue
            short = descriptor.short or f"Transactions commands for the {module_name} module"
            module_cmd = top_level_group(module_name, short)
            self.add_msg_service_commands(module_cmd, descriptor)
            merge_command(msg_cmd, module_cmd)

        return msg_cmd

    def add_msg_service_commands(
        self, cmd: click.Group, descriptor: ServiceCommandDescriptor
    ) -> None:
        """Add a sub-command to *cmd* for each method of the descriptor's service.

        Nested descriptors are built first; an existing same-named child is
        reused and enhanced rather than replaced.
        """
        for name, sub_descriptor in sorted(descriptor.sub_commands.items()):
            sub_cmd = find_sub_command(cmd, name)
            if sub_cmd is None:
                short = sub_descriptor.short or (
                    f"Tx commands for the {sub_descriptor.service} service"
                )
                sub_cmd = top_level_group(name, short)
            elif not isinstance(sub_cmd, click.Group):
                logger.debug(
                    "Keeping leaf command %r; not expanding %s", name, sub_descriptor.service
                )
                continue

            self.add_msg_service_commands(sub_cmd, sub_descriptor)

            if not sub_descriptor.enhance_custom_command:
                merge_command(cmd, sub_cmd)

        if not descriptor.service:
            return

        service = self.registry.find_service_by_name(descriptor.service)

        rpc_opts: dict[str, RpcCommandOptions] = {}
        for option in descriptor.rpc_command_options:
            if service.method_by_name(option.rpc_method) is None:
                raise ConfigurationError(
                    f"rpc method {option.rpc_method!r} not found for service "
                    f"{service.full_name!r}",
                    service=service.full_name,
                    method=option.rpc_method,
                )
            rpc_opts[option.rpc_method] = option

        for method in service.methods:
            options = rpc_opts.get(method.name, RpcCommandOptions())
            if options.skip:
                continue
            if not is_supported_version(method.since, self.app_versions):
                logger.debug("Skipping %s: added in %s", method.full_name, method.since)
                continue
            merge_command(cmd, self.build_msg_method_command(method, options))

    def build_msg_method_command(
        self, method: MethodDescriptor, options: RpcCommandOptions
    ) -> TxCommand:
        """Return a command that builds, addresses and submits *method*'s message.

        Governance-gated methods also get the proposal flags and
        ``--no-proposal``.  Usage text is never printed on errors.
        """
        input_descriptor = self.registry.find_message_by_name(method.input_type)
        resolve_signer(input_descriptor, self.codecs)

        reserved = TX_FLAGS | GOV_FLAGS if options.gov_proposal else TX_FLAGS
        params = build_message_params(input_descriptor, options, reserved=reserved)
        runner = MsgMethodRunner(self, method, options)
        name = options.use.split()[0] if options.use else kebab(method.name)

        def callback(**values: Any) -> None:
            from autotx.commands._context import AppContext

            ctx = click.get_current_context()
            app = AppContext.from_click(ctx)
            try:
                msg = decode_message(
                    self.registry.new_message(method.input_type), values, self.codecs, self.accounts
                )
                result = runner.execute(ctx, msg, values)
            except AutoTxError as exc:
                result = ServiceResult.failure(name, exc)
            app.emit(result)

        short = options.short or f"Execute the {method.name} RPC method"
        cmd = TxCommand(
            name=name,
            callback=callback,
            params=params,
            help=options.long or short,
            short_help=short,
            deprecated=bool(options.deprecated),
            examples=options.example or None,
            aliases=options.alias,
            silence_usage=True,
        )

        if self.add_tx_conn_flags is not None:
            self.add_tx_conn_flags(cmd)

        if options.gov_proposal:
            add_gov_prop_flags(cmd)
            cmd.params.append(
                click.Option(
                    ["--no-proposal", FLAG_NO_PROPOSAL],
                    is_flag=True,
                    help="Skip gov proposal and submit a normal transaction.",
                )
            )

        return cmd


class MsgMethodRunner:
    """Execution logic bound to one method and its options."""

    def __init__(self, builder: Builder, method: MethodDescriptor, options: RpcCommandOptions):
        self.builder = builder
        self.method = method
        self.options = options

    def execute(
        self, ctx: click.Context, msg: DynamicMessage, params: dict[str, Any]
    ) -> ServiceResult:
        """Fill the signer, bridge *msg*, and hand it to the tx pipeline."""
        builder = self.builder
        client_ctx = builder.client_context(ctx, params)
        signer = resolve_signer(msg.descriptor, builder.codecs)

        if self.options.gov_proposal and not params.get(FLAG_NO_PROPOSAL):
            return self.handle_gov_proposal(client_ctx, msg, signer, params)

        if not msg.get(signer.field.name):
            msg.set(signer.field.name, _encode_address(signer.codec, client_ctx.get_from_address()))

        bridged = bridge_message(msg, builder.registry)
        acting = _encode_address(builder.codecs.account, client_ctx.get_from_address())
        return self._annotate(builder.tx_pipeline(client_ctx, acting, bridged), proposal=False)

    def handle_gov_proposal(
        self,
        client_ctx: ClientContext,
        msg: DynamicMessage,
        signer: SignerField,
        params: dict[str, Any],
    ) -> ServiceResult:
        """Set the signer to the gov authority and submit *msg* inside a proposal."""
        codec = self.builder.codecs.account
        try:
            authority = gov_authority(codec)
        except ResolutionError as exc:
            raise ResolutionError(f"failed to convert gov authority: {exc.message}") from exc

        supplied = msg.get(signer.field.name)
        if supplied and supplied != authority:
            logger.warning(
                "Replacing %s=%s with the gov authority %s", signer.field.name, supplied, authority
            )
        msg.set(signer.field.name, authority)

        proposer = _encode_address(codec, client_ctx.get_from_address())
        proposal = read_gov_prop_flags(proposer, params)
        proposal.set_msgs([bridge_message(msg, self.builder.registry)])

        return self._annotate(
            self.builder.tx_pipeline(client_ctx, proposer, proposal), proposal=True
        )

    def _annotate(self, result: ServiceResult, *, proposal: bool) -> ServiceResult:
        meta = {**(result.meta or {}), "method": self.method.full_name, "proposal": proposal}
        return result.model_copy(update={"meta": meta})


def _encode_address(codec: Any, raw: bytes) -> str:
    try:
        return codec.bytes_to_string(raw)
    except ResolutionError as exc:
        raise ResolutionError(
            f"failed to set signer on message, got {raw.hex()!r}: {exc.message}",
            address=raw.hex(),
        ) from exc
