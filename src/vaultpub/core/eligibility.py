"""Ignore-rule evaluation: decide which notes are publishable"""

import logging

from vaultpub.core.context import PipelineContext
from vaultpub.core.models import Document, Eligibility, IgnoredByRule, IgnoreRule
from vaultpub.core.values import ListValue, Missing, Scalar, Value, lookup, primitive_equals


logger = logging.getLogger(__name__)

PUBLISHABLE = Eligibility(is_publishable=True)


def _match_values(value: Value, targets: list) -> object | None:
    """Return the first ignore value matched by a scalar or by any list element."""
    candidates = value.items if isinstance(value, ListValue) else (value,)
    for item in candidates:
        for target in targets:
            if primitive_equals(item, target):
                return target
    return None


def evaluate(doc: Document, rules: list[IgnoreRule]) -> Eligibility:
    """First matching rule wins; a note matching no rule is publishable."""
    nested = doc.frontmatter.nested
    for index, rule in enumerate(rules):
        value = lookup(nested, rule.property)
        if isinstance(value, Missing):
            continue

        if rule.ignore_if is not None and isinstance(value, Scalar) \
                and isinstance(value.value, bool) and value.value is rule.ignore_if:
            return Eligibility(is_publishable=False, ignored_by_rule=IgnoredByRule(
                property=rule.property, reason="ignoreIf", matched_value=value.value, rule_index=index,
            ))

        if rule.ignore_values:
            matched = _match_values(value, rule.ignore_values)
            if matched is not None:
                return Eligibility(is_publishable=False, ignored_by_rule=IgnoredByRule(
                    property=rule.property, reason="ignoreValues", matched_value=matched, rule_index=index,
                ))
    return PUBLISHABLE


def evaluate_ignore_rules(docs: list[Document], ctx: PipelineContext, rules: list[IgnoreRule]) -> list[Document]:
    """Attach eligibility to every note (non-publishable notes are kept; see filter_publishable)."""
    if not rules:
        return [doc.model_copy(update={"eligibility": PUBLISHABLE}) for doc in docs]

    results = []
    for doc in docs:
        ctx.checkpoint()
        eligibility = evaluate(doc, rules)
        if not eligibility.is_publishable:
            hit = eligibility.ignored_by_rule
            logger.info("Note ignored by rule", extra={
                "note_id": doc.note_id, "property": hit.property, "reason": hit.reason,
                "matched_value": hit.matched_value, "rule_index": hit.rule_index,
            })
        results.append(doc.model_copy(update={"eligibility": eligibility}))
    return results


def filter_publishable(docs: list[Document]) -> list[Document]:
    return [d for d in docs if d.eligibility is not None and d.eligibility.is_publishable]
