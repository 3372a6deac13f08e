"""
Mapping rules and the orchestrator that applies them.

A rule links one record attribute (or a value derived from the record)
to one or more template fields and names the setter to use. Rules are
declared in template order in ``rulesets`` and applied one by one; a rule
that blows up becomes a warning and the pass moves on.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from .errors import FillWarning, WarningKind
from .fields import FormDocument
from .logging_config import get_logger
from .setters import (
    DEFAULT_FALLBACKS,
    fill_date,
    fill_segments,
    fill_text,
    is_absent,
    select_choice,
    set_mark,
)

logger = get_logger(__name__)

Resolver = Union[str, Callable[[Mapping], Any]]


class FieldKind(str, Enum):
    TEXT = "text"
    CHOICE = "choice"
    MARK = "mark"
    DATE = "date"
    SEGMENTS = "segments"


def value_of(record: Mapping, key: str):
    """Scalar value of ``key``; missing keys and nested values give None."""
    value = record.get(key)
    return None if is_absent(value) else value


@dataclass(frozen=True)
class MappingRule:
    kind: FieldKind
    targets: tuple
    source: Resolver
    label: str = ""
    year_width: int = 4
    segment_count: int = 0
    segment_length: int = 4

    def resolve(self, record: Mapping):
        if isinstance(self.source, str):
            return value_of(record, self.source)
        return self.source(record)

    def field_names(self) -> list[str]:
        if self.kind is FieldKind.SEGMENTS:
            base = self.targets[0]
            return [f"{base}-{i + 1}" for i in range(self.segment_count)]
        return list(self.targets)

    def describe(self) -> str:
        src = self.source if isinstance(self.source, str) else (self.label or "derived")
        return f"{src} -> {', '.join(self.targets)} ({self.kind.value})"


# ── Rule constructors ───────────────────────────────────────────────
def text(name: str, source: Resolver, label: str = "") -> MappingRule:
    return MappingRule(FieldKind.TEXT, (name,), source, label)


def choice(name: str, source: Resolver, label: str = "") -> MappingRule:
    return MappingRule(FieldKind.CHOICE, (name,), source, label)


def mark(name: str, source: Resolver, label: str = "") -> MappingRule:
    return MappingRule(FieldKind.MARK, (name,), source, label)


def date(day: str, month: str, year: str, source: Resolver, year_width: int = 4) -> MappingRule:
    return MappingRule(FieldKind.DATE, (day, month, year), source, year_width=year_width)


def segments(base: str, count: int, source: Resolver, length: int = 4) -> MappingRule:
    return MappingRule(FieldKind.SEGMENTS, (base,), source,
                       segment_count=count, segment_length=length)


# ── Orchestrator ────────────────────────────────────────────────────
@dataclass
class FillReport:
    warnings: list = field(default_factory=list)
    missing: list = field(default_factory=list)
    rules_applied: int = 0


def apply_rule(form: FormDocument, rule: MappingRule, value, *, century_pivot: Optional[int] = None,
               fallbacks=DEFAULT_FALLBACKS) -> list[FillWarning]:
    if rule.kind is FieldKind.TEXT:
        return fill_text(form, rule.targets[0], value)
    if rule.kind is FieldKind.CHOICE:
        return select_choice(form, rule.targets[0], value, fallbacks=fallbacks)
    if rule.kind is FieldKind.MARK:
        return set_mark(form, rule.targets[0], value)
    if rule.kind is FieldKind.DATE:
        return fill_date(form, rule.targets, value, year_width=rule.year_width,
                         century_pivot=century_pivot)
    if rule.kind is FieldKind.SEGMENTS:
        return fill_segments(form, rule.targets[0], rule.segment_count, value,
                             segment_length=rule.segment_length)
    raise ValueError(f"Unsupported field kind: {rule.kind}")


def missing_fields(form: FormDocument, rules) -> list[str]:
    """Rule targets the template does not have, sorted."""
    names = set()
    for rule in rules:
        names.update(n for n in rule.field_names() if form.field(n) is None)
    return sorted(names)


def apply_rules(form: FormDocument, record, rules, *, century_pivot: Optional[int] = None,
                fallbacks=DEFAULT_FALLBACKS) -> FillReport:
    """Apply every rule to ``form`` in declaration order. Never raises."""
    report = FillReport()
    if not isinstance(record, Mapping):
        logger.warning("Record is a %s, not a mapping; nothing to fill", type(record).__name__)
        record = {}

    for rule in rules:
        try:
            value = rule.resolve(record)
            warnings = apply_rule(form, rule, value, century_pivot=century_pivot,
                                  fallbacks=fallbacks)
        except Exception as e:
            warnings = [FillWarning(
                WarningKind.RULE_ERROR, rule.targets[0],
                f"Rule {rule.describe()} failed: {e}",
            )]
        for w in warnings:
            logger.warning("%s", w.message)
        report.warnings.extend(warnings)
        report.rules_applied += 1

    report.missing = missing_fields(form, rules)
    if report.missing:
        logger.debug("%d mapped fields not found in template: %s",
                     len(report.missing), ", ".join(report.missing[:10]))
    return report
