import re
from typing import Any, List, Optional, Literal, Union

from pydantic import BaseModel, Field, field_validator

RuleType = Literal[
    "about_blank",
    "activities_blank",
    "links_in_comments_or_about",
    "email_unconfirmed",
    "email_domain",
    "links_in_comments_or_about_with_domains",
]
ApplicationType = Literal["positive", "negative"]
EditorSubject = Literal["editor_image"]

_LIST_SPLIT = re.compile(r"[\s,;]+")


def split_domain_list(value: Any) -> list[str]:
    """Normalize a stored allow/block list.

    Admin forms store the lists as one string separated by spaces, commas or
    new lines; API clients send JSON arrays. Both end up as a lower-cased list.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = _LIST_SPLIT.split(value)
    elif isinstance(value, (list, tuple)):
        items = []
        for item in value:
            items.extend(_LIST_SPLIT.split(str(item)))
    else:
        raise ValueError("allowlist/blocklist must be a string or a list of strings")
    return [item.strip().lower() for item in items if item and item.strip()]


class RuleDefinition(BaseModel):
    id: Union[int, str]
    # Kept as a plain string: unknown types are skipped while scoring.
    type: str
    weight: float = Field(ge=0)
    allowlist: List[str] = Field(default_factory=list)
    blocklist: List[str] = Field(default_factory=list)
    application_type: ApplicationType = "positive"

    model_config = {"frozen": True}

    @field_validator("allowlist", "blocklist", mode="before")
    @classmethod
    def _split_lists(cls, value: Any) -> list[str]:
        return split_domain_list(value)

    @field_validator("application_type", mode="before")
    @classmethod
    def _default_application(cls, value: Any) -> Any:
        if value is None or value == "":
            return "positive"
        return value

    @property
    def positive(self) -> bool:
        return self.application_type == "positive"


class RulesConfigRequest(BaseModel):
    rules: List[RuleDefinition]


class UserCreateRequest(BaseModel):
    user_id: str
    email: str
    about: Optional[str] = None
    confirmed: bool = False
    admin: bool = False


class ContentCreateRequest(BaseModel):
    kind: str = "comment"
    body: str


class EditorImageRequest(BaseModel):
    subject: EditorSubject = "editor_image"
    user_id: Optional[str] = None
    config: dict = Field(default_factory=dict)
