from typing import Any, Iterator, Protocol

from ..evaluation import Detection, EvaluationContext


class ConfigStore(Protocol):
    def get_config(self, organization_id: str, var: str) -> Any: ...

    def set_config(self, organization_id: str, var: str, value: Any) -> None: ...


class UserAccessor(Protocol):
    def get_user(self, user_id: str) -> dict | None: ...


class ContentAccessor(Protocol):
    def count_contents(self, user_id: str) -> int: ...

    def iter_content_bodies(self, user_id: str, limit: int | None = None) -> Iterator[str]: ...


class StorageBackend(ConfigStore, UserAccessor, ContentAccessor, Protocol):
    def init(self) -> None: ...

    def create_user(self, data: dict) -> None: ...

    def add_content(self, user_id: str, kind: str, body: str) -> int: ...


class Evaluator(Protocol):
    type: str
    description: str

    def detect(self, context: EvaluationContext) -> Detection: ...
