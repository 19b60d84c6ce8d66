"""
Declarative selector rules.

A rule binds an XPath pattern to an extraction function and one or more target
fields. Rules are evaluated in declared order against one parsed document and
write through ``assign`` which enforces the merge policy:

- scalar fields are first-match-wins: once non-empty they are never overwritten;
- list fields accumulate every value in document order (``actors`` skips
  duplicates).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Protocol

from avmeta.utils.logger import logger
from avmeta.utils.network import Document, Fetcher
from avmeta.utils.parser import child_text, text_of


class Policy(Enum):
    FIRST = "first"
    APPEND = "append"
    UNIQUE = "unique"


_LIST_POLICIES = {
    "actors": Policy.UNIQUE,
    "tags": Policy.APPEND,
    "preview_images": Policy.APPEND,
}


def default_policy(record: Any, target: str) -> Policy:
    if target in _LIST_POLICIES:
        return _LIST_POLICIES[target]
    if isinstance(getattr(record, target), list):
        return Policy.APPEND
    return Policy.FIRST


def _clean(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def assign(record: Any, target: str, value: Any, policy: Policy | None = None) -> bool:
    """Write value into record.target under the merge policy.

    Empty values ("", None, 0, []) are never written. Returns True when the
    record changed.
    """
    if not hasattr(record, target):
        raise AttributeError(f"{type(record).__name__} has no field {target!r}")
    policy = policy or default_policy(record, target)

    if policy is Policy.FIRST:
        if isinstance(value, (list, tuple)):
            value = next((v for v in map(_clean, value) if v), None)
        value = _clean(value)
        if not value or getattr(record, target):
            return False
        setattr(record, target, value)
        return True

    current = getattr(record, target)
    values = value if isinstance(value, (list, tuple)) else [value]
    changed = False
    for v in map(_clean, values):
        if not v:
            continue
        if policy is Policy.UNIQUE and v in current:
            continue
        current.append(v)
        changed = True
    return changed


@dataclass
class ExtractionContext:
    """What a rule may see: the parsed document and the invocation's fetcher."""

    document: Document
    fetcher: Fetcher
    provider: str = ""


Extractor = Callable[[Any, ExtractionContext], Any]


class Rule(Protocol):
    xpath: str

    def apply(self, ctx: ExtractionContext, record: Any, scope: Any = None) -> None:
        ...


def extract_text(node, ctx: ExtractionContext) -> str:
    return text_of(node)


def extract_url(node, ctx: ExtractionContext) -> str:
    """Absolute URL from an attribute node (``.../@src``) or element text."""
    return ctx.document.absolute_url(text_of(node))


@dataclass(frozen=True)
class SelectorRule:
    xpath: str
    target: str | tuple[str, ...]
    extract: Extractor = extract_text
    policy: Policy | None = None

    @property
    def targets(self) -> tuple[str, ...]:
        return (self.target,) if isinstance(self.target, str) else tuple(self.target)

    def apply(self, ctx: ExtractionContext, record: Any, scope: Any = None) -> None:
        root = ctx.document.root if scope is None else scope
        for node in root.xpath(self.xpath):
            value = self.extract(node, ctx)
            if value is None:
                continue
            for target in self.targets:
                assign(record, target, value, self.policy)


@dataclass(frozen=True)
class RecordRule:
    """One matched node yields several fields at once (e.g. a JSON-LD block)."""

    xpath: str
    extract: Callable[[Any, ExtractionContext], Mapping[str, Any] | None]

    def apply(self, ctx: ExtractionContext, record: Any, scope: Any = None) -> None:
        root = ctx.document.root if scope is None else scope
        for node in root.xpath(self.xpath):
            values = self.extract(node, ctx) or {}
            for target, value in values.items():
                assign(record, target, value)


@dataclass(frozen=True)
class FieldCase:
    target: str
    extract: Extractor
    policy: Policy | None = None


@dataclass(frozen=True)
class FieldBlockRule:
    """Label-dispatched rule over repeated "label: value" blocks.

    ``cases`` maps each known label text to the field it fills. A block whose
    label is not listed is ignored (logged at debug).
    """

    xpath: str
    label_xpath: str
    cases: Mapping[str, FieldCase]

    def apply(self, ctx: ExtractionContext, record: Any, scope: Any = None) -> None:
        root = ctx.document.root if scope is None else scope
        for block in root.xpath(self.xpath):
            label = child_text(block, self.label_xpath).rstrip(":：").strip()
            case = self.cases.get(label)
            if case is None:
                logger.debug(f"skip field block: unknown label {label!r}")
                continue
            value = case.extract(block, ctx)
            if value is None:
                continue
            assign(record, case.target, value, case.policy)


def apply_rules(rules: Iterable[Rule], ctx: ExtractionContext, record: Any, scope: Any = None) -> Any:
    """Run rules in order; a rule that raises is logged and skipped."""
    for rule in rules:
        try:
            rule.apply(ctx, record, scope)
        except Exception as e:
            logger.warning(f"rule {getattr(rule, 'xpath', rule)!r} failed: {e}")
    return record
