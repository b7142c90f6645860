"""Autoblock score aggregation.

Every configured rule is evaluated on its own and yields a ``(label,
contribution)`` pair; the pairs are reduced once into the result. A rule's
polarity is applied to the evaluator's detection before the allow/block
lists, so an allowlisted domain never scores.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from .config import get_settings
from .errors import RuleConfigError, UserNotFoundError
from .evaluation import EvaluationContext
from .ext.registry import EvaluatorRegistry, get_evaluator_registry, get_storage
from .logging import log_event
from .matcher import decide
from .schemas import RuleDefinition

TOTAL_KEY = "total_score"


@dataclass
class ScoreResult:
    total_score: float = 0
    rules: dict[str, float] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {TOTAL_KEY: self.total_score, **self.rules}


def rule_label(description: str, rule_id: Any) -> str:
    return f"{description} - {rule_id}"


def load_rules(raw: Any) -> list[RuleDefinition]:
    """Build rule definitions from a stored configuration value."""
    if raw is None or raw == "":
        return []
    if not isinstance(raw, (list, tuple)):
        raise RuleConfigError("Rules configuration must be a list", detail=type(raw).__name__)
    rules: list[RuleDefinition] = []
    seen: set[str] = set()
    for index, item in enumerate(raw):
        if isinstance(item, RuleDefinition):
            rule = item
        else:
            try:
                rule = RuleDefinition.model_validate(item)
            except ValidationError as exc:
                raise RuleConfigError(f"Invalid rule at position {index}", detail=exc.errors(include_url=False, include_context=False)) from exc
        key = str(rule.id)
        if key in seen:
            raise RuleConfigError(f"Duplicated rule id: {key}", detail=key)
        seen.add(key)
        rules.append(rule)
    return rules


def _weight(value: float) -> float:
    return int(value) if float(value).is_integer() else value


def evaluate_rule(rule: RuleDefinition, context: EvaluationContext, registry: EvaluatorRegistry) -> tuple[str, float] | None:
    evaluator = registry.get(rule.type)
    if evaluator is None:
        log_event("rules.skip_unknown", level=logging.DEBUG, rule_id=str(rule.id), rule_type=rule.type)
        return None
    detection = evaluator.detect(context)
    detected = detection.satisfied if rule.positive else not detection.satisfied
    scored = decide(detection.domains, rule.allowlist, rule.blocklist, detected)
    contribution = _weight(rule.weight) if scored else 0
    return rule_label(evaluator.description, rule.id), contribution


def score(rules: Iterable[RuleDefinition], context: EvaluationContext, registry: EvaluatorRegistry | None = None) -> ScoreResult:
    registry = registry or get_evaluator_registry()
    pairs = [evaluate_rule(rule, context, registry) for rule in rules]
    result = ScoreResult()
    for pair in pairs:
        if pair is None:
            continue
        label, contribution = pair
        result.rules[label] = contribution
    result.total_score = sum(result.rules.values())
    return result


def compute_score(
    user_id: str,
    rules: Sequence[RuleDefinition | dict] | None = None,
    storage=None,
    registry: EvaluatorRegistry | None = None,
) -> ScoreResult:
    start = time.time()
    settings = get_settings()
    storage = storage or get_storage()
    user = storage.get_user(user_id)
    if not user:
        raise UserNotFoundError(user_id)
    if rules is None:
        rules = storage.get_config(user["organization_id"], settings.rules_var)
    definitions = load_rules(rules)
    context = EvaluationContext(user, storage)
    result = score(definitions, context, registry)
    log_event(
        "scores.compute",
        user_id=user_id,
        organization_id=user.get("organization_id"),
        rules=len(definitions),
        total_score=result.total_score,
        duration_ms=int((time.time() - start) * 1000),
    )
    return result
