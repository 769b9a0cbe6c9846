"""The note record consumed by the graph engine."""

from __future__ import annotations

import re
from datetime import UTC, datetime

from pydantic import BaseModel, Field, model_validator

from notegraph.graph.links import LinkTarget, outgoing_links

_FRONTMATTER_RE = re.compile(r"^---\n(.*?)\n---(?:\n|$)", re.DOTALL)

UNTITLED = "Untitled"


def parse_frontmatter(content: str) -> dict[str, str | list[str]]:
    """Extract the leading ``---`` metadata block as a flat dict.

    Handles ``key: value`` scalars, inline ``[a, b]`` lists and indented
    ``- item`` lists. Surrounding quotes are removed from scalars.
    """
    match = _FRONTMATTER_RE.match(content)
    if match is None:
        return {}

    result: dict[str, str | list[str]] = {}
    list_key: str | None = None

    for line in match.group(1).splitlines():
        stripped = line.strip()
        if list_key is not None and stripped.startswith("- "):
            items = result.setdefault(list_key, [])
            if isinstance(items, list):
                items.append(_unquote(stripped[2:].strip()))
            continue
        list_key = None

        key, sep, value = line.partition(":")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue
        value = value.strip()
        if not value:
            list_key = key
            continue
        if value.startswith("[") and value.endswith("]"):
            inner = value[1:-1]
            result[key] = [
                item.strip().replace('"', "").replace("'", "")
                for item in inner.split(",")
                if item.strip()
            ]
        else:
            result[key] = _unquote(value)

    return result


def strip_frontmatter(content: str) -> str:
    """Return *content* without its leading metadata block."""
    return _FRONTMATTER_RE.sub("", content, count=1)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


class Note(BaseModel):
    """A note owned by the host application.

    ``title`` is taken from the ``title:`` metadata key when the content
    carries one, otherwise the stored value is kept.
    """

    id: str
    title: str = UNTITLED
    content: str = ""
    folder: str = ""
    created: datetime = Field(default_factory=lambda: datetime.now(UTC))
    modified: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def _title_from_metadata(self) -> Note:
        meta_title = parse_frontmatter(self.content).get("title")
        if isinstance(meta_title, str) and meta_title:
            self.title = meta_title
        elif not self.title:
            self.title = UNTITLED
        return self

    # -- Metadata ------------------------------------------------------------

    def metadata(self) -> dict[str, str | list[str]]:
        return parse_frontmatter(self.content)

    @property
    def tags(self) -> list[str]:
        tags = self.metadata().get("tags")
        return tags if isinstance(tags, list) else []

    @property
    def body(self) -> str:
        """Content with the metadata block stripped."""
        return strip_frontmatter(self.content)

    @property
    def word_count(self) -> int:
        return len(self.body.split())

    @property
    def character_count(self) -> int:
        return len(self.body)

    def first_paragraph(self, limit: int = 100) -> str:
        """First non-blank paragraph of the body on one line, truncated."""
        for paragraph in self.body.split("\n\n"):
            if paragraph.strip():
                return paragraph.replace("\n", " ")[:limit]
        return ""

    # -- Links ---------------------------------------------------------------

    def outgoing_links(self) -> list[LinkTarget]:
        """Distinct link targets declared in the content, unresolved."""
        return outgoing_links(self.content)
