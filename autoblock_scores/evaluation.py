from __future__ import annotations

import re
from dataclasses import dataclass
from functools import cached_property
from typing import TYPE_CHECKING, Iterator

from .links import email_domain

if TYPE_CHECKING:
    from .ext.interfaces import ContentAccessor

_TAG_RE = re.compile(r"<[^>]*>")


@dataclass(frozen=True)
class Detection:
    satisfied: bool
    domains: tuple[str, ...] = ()


class EvaluationContext:
    """Read-only view of one user for the length of a scoring call.

    Content bodies are streamed from the accessor on first use; bodies already
    read are replayed for later rules, so the accessor is queried once.
    """

    def __init__(self, user: dict, contents: ContentAccessor) -> None:
        self._user = user
        self._contents = contents
        self._bodies_read: list[str] = []
        self._bodies_pending: Iterator[str] | None = None
        self._bodies_done = False

    @property
    def user_id(self) -> str:
        return str(self._user["user_id"])

    @property
    def organization_id(self) -> str | None:
        return self._user.get("organization_id")

    @property
    def about(self) -> str:
        return self._user.get("about") or ""

    @property
    def about_blank(self) -> bool:
        return not _TAG_RE.sub("", self.about).strip()

    @property
    def email(self) -> str:
        return self._user.get("email") or ""

    @property
    def email_domain(self) -> str | None:
        return email_domain(self.email)

    @property
    def email_domains(self) -> tuple[str, ...]:
        domain = self.email_domain
        return (domain,) if domain else ()

    @property
    def confirmed(self) -> bool:
        return bool(self._user.get("confirmed"))

    @property
    def admin(self) -> bool:
        return bool(self._user.get("admin"))

    @cached_property
    def content_count(self) -> int:
        return self._contents.count_contents(self.user_id)

    def content_bodies(self) -> Iterator[str]:
        yield from self._bodies_read
        if self._bodies_done:
            return
        if self._bodies_pending is None:
            self._bodies_pending = iter(self._contents.iter_content_bodies(self.user_id))
        for body in self._bodies_pending:
            self._bodies_read.append(body)
            yield body
        self._bodies_done = True

    def texts(self) -> Iterator[str]:
        yield self.about
        yield from self.content_bodies()
