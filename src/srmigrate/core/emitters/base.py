"""Shared pieces of the DDL emitters.

Emitters walk a planned rule map in rule declaration order and render
statements for one target family. Rule property maps are shared between
emitters and between the tables of a rule: whatever an emitter adds to them
is visible to everything rendered after it, so the order emitters run in is
part of their contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from srmigrate.core.models import MigrationRule, TableDescriptor
from srmigrate.core.planning import PlannedRuleMap
from srmigrate.core.sources import SchemaIntrospector

TEMPORAL_TYPES = ("date", "datetime", "timestamp")


@dataclass
class DDLResult:
    """
    Statements produced by one emitter.

    Attributes:
        prefix: File name prefix for this target family.
        statements: All statements in emission order.
        by_rule: Statements per rule `seq`; every visited rule has an entry.
    """

    prefix: str
    statements: list[str] = field(default_factory=list)
    by_rule: dict[str, list[str]] = field(default_factory=dict)

    def add(self, seq: str, statement: str, *, once: bool = False) -> None:
        """Record a statement; with `once`, skip it where already present."""
        rule_statements = self.by_rule.setdefault(seq, [])
        if not once or statement not in self.statements:
            self.statements.append(statement)
        if not once or statement not in rule_statements:
            rule_statements.append(statement)


def encode_comment(comment: str) -> str:
    """Escape double quotes and flatten line breaks."""
    return comment.replace('"', '\\"').replace("\n", " ").replace("\r", " ")


def quote_columns(names: Iterable[str]) -> str:
    return ", ".join(f"`{name}`" for name in names)


def render_properties(props: Mapping[str, str], quote: str = '"') -> str:
    return ",\n".join(
        f"  {quote}{key}{quote} = {quote}{value}{quote}" for key, value in props.items()
    )


def trim_anchors(pattern: str) -> str:
    """Strip a leading `^` and trailing `$` from a rule pattern."""
    if pattern.endswith("$"):
        pattern = pattern[:-1]
    if pattern.startswith("^"):
        pattern = pattern[1:]
    return pattern


def target_table_name(
    rule: MigrationRule, table: TableDescriptor, introspector: SchemaIntrospector
) -> str:
    """
    Name of the target table.

    Shard families and dialects with a real schema level keep the schema
    in the name (`<schema>__<table>`) so tables from different schemas
    cannot collide.
    """
    if rule.from_shard or introspector.combine_schema_name:
        return table.schema_prefixed_name
    return table.name


class Emitter(ABC):
    """Base class for DDL emitters of one target family."""

    prefix: str = ""

    def __init__(self, introspector: SchemaIntrospector) -> None:
        self.introspector = introspector

    @abstractmethod
    def emit(self, planned: PlannedRuleMap) -> DDLResult:
        """Render the statements for every planned bundle."""
        ...
