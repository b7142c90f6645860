import logging

from .interfaces import Evaluator, StorageBackend
from .backends.sqlite import SQLiteStorage
from .evaluators.profile import AboutBlank, EmailDomain, EmailUnconfirmed
from .evaluators.activity import ActivitiesBlank, LinksInCommentsOrAbout, LinksInCommentsOrAboutWithDomains
from ..config import get_settings
from ..logging import log_event

BUILTIN_EVALUATORS = (
    AboutBlank,
    ActivitiesBlank,
    LinksInCommentsOrAbout,
    EmailUnconfirmed,
    EmailDomain,
    LinksInCommentsOrAboutWithDomains,
)


class EvaluatorRegistry:
    def __init__(self) -> None:
        self._evaluators: dict[str, Evaluator] = {}

    def register(self, evaluator: Evaluator) -> None:
        self._evaluators[evaluator.type] = evaluator
        log_event("evaluators.register", level=logging.DEBUG, rule_type=evaluator.type)

    def get(self, rule_type: str) -> Evaluator | None:
        return self._evaluators.get(rule_type)

    def types(self) -> list[str]:
        return list(self._evaluators)

    def __contains__(self, rule_type: str) -> bool:
        return rule_type in self._evaluators


def default_registry() -> EvaluatorRegistry:
    registry = EvaluatorRegistry()
    for evaluator_cls in BUILTIN_EVALUATORS:
        registry.register(evaluator_cls())
    return registry


_storage: StorageBackend | None = None
_evaluators: EvaluatorRegistry | None = None


def get_storage() -> StorageBackend:
    global _storage
    if _storage:
        return _storage
    settings = get_settings()
    if settings.backend == "sqlite":
        _storage = SQLiteStorage()
    else:
        raise ValueError(f"Unknown backend: {settings.backend}")
    _storage.init()
    return _storage


def get_evaluator_registry() -> EvaluatorRegistry:
    global _evaluators
    if _evaluators:
        return _evaluators
    _evaluators = default_registry()
    return _evaluators
