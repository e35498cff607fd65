"""End-to-end migration planning and DDL generation.

This module ties the core together for frontends: introspect, match rules,
merge shards, plan capacity, then run the emitters the source supports.
Emitters run sequentially in a fixed order (warehouse, external, pipeline)
because they share and extend the rules' property maps.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from srmigrate.core.config import MigrationConfig
from srmigrate.core.emitters.base import DDLResult, Emitter
from srmigrate.core.emitters.external import ExternalEmitter
from srmigrate.core.emitters.flink import PipelineEmitter
from srmigrate.core.emitters.starrocks import StarRocksEmitter
from srmigrate.core.models import MigrationRule
from srmigrate.core.planning import PlannedRuleMap, plan_rule_map
from srmigrate.core.sources import SchemaIntrospector, Target, build_rule_map

logger = logging.getLogger(__name__)

_EMITTERS: list[tuple[Target, type[Emitter]]] = [
    (Target.WAREHOUSE, StarRocksEmitter),
    (Target.EXTERNAL, ExternalEmitter),
    (Target.PIPELINE, PipelineEmitter),
]


def emitters_for(introspector: SchemaIntrospector) -> list[Emitter]:
    """Emitters for every target family the introspector supports, in run order."""
    return [
        emitter_cls(introspector)
        for target, emitter_cls in _EMITTERS
        if target in introspector.targets
    ]


def plan(
    config: MigrationConfig,
    introspector: SchemaIntrospector,
    *,
    rules: Sequence[MigrationRule] | None = None,
    now: datetime | None = None,
) -> PlannedRuleMap:
    """
    Introspect the source and plan the bundles of each rule.

    Tables are always matched against all configured rules; `rules` only
    limits which rules are planned afterwards.
    """
    rule_map = build_rule_map(introspector, config.rules)
    if rules is not None:
        rule_map = {rule: rule_map.get(rule, []) for rule in rules}
    return plan_rule_map(rule_map, config.backend_count, now)


def generate(
    config: MigrationConfig,
    introspector: SchemaIntrospector,
    *,
    rules: Sequence[MigrationRule] | None = None,
    now: datetime | None = None,
) -> list[DDLResult]:
    """Plan and render DDL for all supported target families."""
    planned = plan(config, introspector, rules=rules, now=now)
    results = []
    for emitter in emitters_for(introspector):
        result = emitter.emit(planned)
        logger.info("%s: %d statement(s)", result.prefix, len(result.statements))
        results.append(result)
    return results
