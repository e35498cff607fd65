"""Application context management for the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field

from srmigrate.cli.common.exits import exit_from_exc
from srmigrate.core.config import MigrationConfig, load_config
from srmigrate.core.errors import MigrationError
from srmigrate.core.sources import SchemaIntrospector, create_introspector


@dataclass
class MigrateAppContext:
    """Application context holding the loaded config and the source introspector."""

    config: MigrationConfig
    verbose: bool = False
    _introspector: SchemaIntrospector | None = field(default=None, repr=False)

    @property
    def introspector(self) -> SchemaIntrospector:
        """Introspector for the configured source, created on first use."""
        if self._introspector is None:
            try:
                self._introspector = create_introspector(self.config)
            except MigrationError as exc:
                exit_from_exc(exc)
        return self._introspector

    def close(self) -> None:
        if self._introspector is not None:
            self._introspector.close()
            self._introspector = None


def build_migrate_context(config_path: str | None, *, verbose: bool = False) -> MigrateAppContext:
    """Build and return the application context from the migration config.

    Args:
        config_path: Optional path to the INI config; falls back to $SRMIGRATE_CONFIG.
        verbose: Whether debug logging was requested.

    Returns:
        MigrateAppContext: Application context with the parsed config.
    """
    try:
        config = load_config(config_path)
    except MigrationError as exc:
        exit_from_exc(exc)
    return MigrateAppContext(config=config, verbose=verbose)
