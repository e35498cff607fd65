"""Exception hierarchy for migration planning.

Only fatal conditions raise. Tables that match no rule, shard families that
fail the layout check and key groups with nullable columns are ordinary
outcomes and never surface here.
"""


class MigrationError(RuntimeError):
    """Base class for fatal migration errors."""


class ConfigError(MigrationError):
    """Raised when the configuration file is missing or invalid."""


class IntrospectionError(MigrationError):
    """Raised when source metadata cannot be read or is empty."""


class FormatError(MigrationError):
    """Raised when a column definition cannot be rendered."""
