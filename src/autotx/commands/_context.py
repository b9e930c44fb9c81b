"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy schema, codec and plugin
initialization and centralized result emission (stdout/stderr routing +
exit codes).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from autotx.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from autotx.address.codec import AddressCodecs
    from autotx.autocli.options import AppOptions
    from autotx.config.settings import AutoTxSettings
    from autotx.plugins.manager import PluginManager
    from autotx.schema.registry import SchemaRegistry
    from autotx.services.result import ServiceResult

logger = logging.getLogger(__name__)


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  Schemas and plugins
    are loaded on first use so ``--help`` and ``--version`` never read
    schema files or import plugin code.
    """

    def __init__(self, settings: AutoTxSettings) -> None:
        self.settings = settings
        self._registry: SchemaRegistry | None = None
        self._app_options: AppOptions | None = None
        self._codecs: AddressCodecs | None = None
        self._plugins: PluginManager | None = None
        self.tx_tree: click.Group | None = None

        # Configure structured logging
        from autotx.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @classmethod
    def from_click(cls, ctx: click.Context) -> AppContext:
        """The AppContext of *ctx*, creating a default one when absent."""
        app = ctx.find_object(AppContext)
        if app is None:
            from autotx.config.settings import AutoTxSettings

            app = cls(AutoTxSettings.from_cli())
            root = ctx.find_root()
            if root.obj is None:
                root.obj = app
        return app

    @property
    def registry(self) -> SchemaRegistry:
        """Built-in schemas plus ``[schemas] files``, validated once."""
        if self._registry is None:
            self._load_schemas()
        assert self._registry is not None
        return self._registry

    @property
    def app_options(self) -> AppOptions:
        """Built-in module options overlaid with the ``modules`` tables of schema files."""
        if self._app_options is None:
            self._load_schemas()
        assert self._app_options is not None
        return self._app_options

    @property
    def codecs(self) -> AddressCodecs:
        if self._codecs is None:
            from autotx.address.codec import AddressCodecs

            self._codecs = AddressCodecs.from_prefix(self.settings.chain.bech32_prefix)
        return self._codecs

    @property
    def plugins(self) -> PluginManager:
        """The plugin manager (plugins discovered lazily on first access)."""
        if self._plugins is None:
            from autotx.plugins.manager import PluginManager

            self._plugins = PluginManager()
            if self.settings.plugins.enabled:
                local_dir = self.settings.resolve_path(self.settings.plugins.local_dir)
                names = self._plugins.discover_and_load(local_dir=local_dir)
                logger.debug("Loaded plugins: %s", names)
        return self._plugins

    def _load_schemas(self) -> None:
        from autotx.autocli.options import AppOptions
        from autotx.builtin import BUILTIN_SCHEMA, builtin_app_options
        from autotx.schema.registry import SchemaRegistry

        registry = SchemaRegistry()
        options = AppOptions()
        if self.settings.schemas.include_builtin:
            registry.load_dict(BUILTIN_SCHEMA, source="builtin")
            options = builtin_app_options()
        for value in self.settings.schemas.files:
            path = self.settings.resolve_path(value)
            data = registry.load_schema_file(path)
            options = options.merged(AppOptions.from_dict(data, source=str(path)))
        registry.validate()
        self._registry = registry
        self._app_options = options

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
