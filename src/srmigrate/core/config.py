"""Configuration loading.

The tool is driven by an INI file with a `[db]` section (source
connection), an `[other]` section (cluster size and output options) and one
`[table-rule.<seq>]` section per migration rule. Rule sections may carry
prefixed keys that feed the rule's property maps:

    properties.<key>            target table PROPERTIES
    external.properties.<key>   external table PROPERTIES
    flink.starrocks.<key>       pipeline sink options
    flink.cdc.<key>             pipeline source options
"""

from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from srmigrate.core.errors import ConfigError
from srmigrate.core.models import MigrationRule
from srmigrate.core.properties import fill_missing

logger = logging.getLogger(__name__)

CONFIG_ENV = "SRMIGRATE_CONFIG"
PASSWORD_ENV = "SRMIGRATE_DB_PASSWORD"
RULE_SECTION_PREFIX = "table-rule."
SUPPORTED_SOURCES = ("mysql", "tidb")
MAX_REPLICATION_NUM = 3

_PROPERTY_PREFIXES = (
    ("external.properties.", "external_properties"),
    ("properties.", "properties"),
    ("flink.starrocks.", "pipeline_sink_props"),
    ("flink.cdc.", "pipeline_source_props"),
)


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings of the source database."""

    host: str
    port: int
    user: str
    password: str
    type: str = "mysql"


@dataclass
class MigrationConfig:
    """
    Fully loaded tool configuration.

    Attributes:
        database: Source database connection settings.
        backend_count: Number of backends in the target cluster.
        use_decimal_v3: Allow DECIMAL precision up to 38 instead of 27.
        output_dir: Directory the generated DDL files are written to.
        rules: Migration rules in file order.
        path: File the configuration was read from.
    """

    database: DatabaseConfig
    backend_count: int
    use_decimal_v3: bool = False
    output_dir: str = "./result"
    rules: list[MigrationRule] = field(default_factory=list)
    path: Path | None = None

    @property
    def replication_num(self) -> int:
        return min(MAX_REPLICATION_NUM, self.backend_count)


def resolve_config_path(path: str | os.PathLike | None) -> Path:
    """
    Resolve the config path from the argument or `SRMIGRATE_CONFIG`.

    A comma-separated list is accepted; only its first entry is used.
    """
    raw = str(path) if path else os.getenv(CONFIG_ENV, "")
    first = raw.split(",", 1)[0].strip()
    if not first:
        raise ConfigError(f"No config file given (use --config or set {CONFIG_ENV}).")
    return Path(first).expanduser()


def _required(parser: configparser.ConfigParser, section: str, key: str) -> str:
    try:
        return parser.get(section, key)
    except (configparser.NoSectionError, configparser.NoOptionError) as exc:
        raise ConfigError(f"config [{section}].{key} not found") from exc


def _int(parser: configparser.ConfigParser, section: str, key: str, default: int | None = None) -> int:
    if default is not None and not parser.has_option(section, key):
        return default
    raw = _required(parser, section, key)
    if default is not None and not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"config [{section}].{key} must be an integer, got {raw!r}") from exc


def _bool(parser: configparser.ConfigParser, section: str, key: str) -> bool:
    _required(parser, section, key)
    try:
        return parser.getboolean(section, key)
    except ValueError as exc:
        raise ConfigError(f"config [{section}].{key} must be a boolean") from exc


def parse_rule(parser: configparser.ConfigParser, section: str) -> MigrationRule:
    """Build a MigrationRule from one `[table-rule.<seq>]` section."""
    rule = MigrationRule(
        seq=section[len(RULE_SECTION_PREFIX):],
        catalog_pattern=_required(parser, section, "database"),
        table_pattern=_required(parser, section, "table"),
        schema_pattern=parser.get(section, "schema", fallback="") or ".*",
        partition_key=parser.get(section, "partition_key", fallback=""),
        partitions=parser.get(section, "partitions", fallback=""),
        duplicate_keys=parser.get(section, "duplicate_keys", fallback=""),
        distributed_by=parser.get(section, "distributed_by", fallback=""),
        bucket_count=_int(parser, section, "bucket_num", default=0),
    )

    for key, value in parser.items(section):
        for prefix, attr in _PROPERTY_PREFIXES:
            if key.startswith(prefix):
                getattr(rule, attr)[key[len(prefix):]] = value
                break
    return rule


def parse_config(parser: configparser.ConfigParser, path: Path | None = None) -> MigrationConfig:
    """Turn a populated ConfigParser into a MigrationConfig."""
    source_type = parser.get("db", "type", fallback="mysql").strip().lower() or "mysql"
    if source_type not in SUPPORTED_SOURCES:
        raise ConfigError(
            f"Unsupported db source {source_type!r} "
            f"(supported: {', '.join(SUPPORTED_SOURCES)})."
        )

    database = DatabaseConfig(
        host=_required(parser, "db", "host"),
        port=_int(parser, "db", "port"),
        user=_required(parser, "db", "user"),
        password=os.getenv(PASSWORD_ENV) or _required(parser, "db", "password"),
        type=source_type,
    )
    backend_count = _int(parser, "other", "be_num")
    if backend_count < 1:
        raise ConfigError("config [other].be_num must be >= 1")

    config = MigrationConfig(
        database=database,
        backend_count=backend_count,
        use_decimal_v3=_bool(parser, "other", "use_decimal_v3"),
        output_dir=parser.get("other", "output_dir", fallback="") or "./result",
        path=path,
    )

    for section in parser.sections():
        if not section.startswith(RULE_SECTION_PREFIX):
            continue
        rule = parse_rule(parser, section)
        fill_missing(rule.properties, {"replication_num": str(config.replication_num)})
        config.rules.append(rule)

    logger.info(
        "Loaded %d table rule(s) for %s source %s:%d",
        len(config.rules),
        source_type,
        database.host,
        database.port,
    )
    return config


def new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None, inline_comment_prefixes=(";",))
    parser.optionxform = str  # keep property keys case-sensitive
    return parser


def load_config(path: str | os.PathLike | None = None) -> MigrationConfig:
    """
    Load and validate the configuration file.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    config_path = resolve_config_path(path)
    parser = new_parser()
    try:
        with open(config_path, encoding="utf-8") as handle:
            parser.read_file(handle)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {config_path}: {exc}") from exc
    except configparser.Error as exc:
        raise ConfigError(f"Invalid config file {config_path}: {exc}") from exc
    return parse_config(parser, path=config_path)
