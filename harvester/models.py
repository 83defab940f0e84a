"""
Data types shared by the orchestrator, the page controller and the artifact emitter.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Sentinel values the extraction script uses for pages without a posts view
SENTINEL_PAGE_NAME = "not found"
SENTINEL_CONTENT = "no post"

# Placeholder row values for pages that were given up on
SKIPPED_PAGE_NAME = "skipped"
SKIPPED_CONTENT = "no post or error"

CSV_HEADERS = ["PageURL", "PageName", "Content", "PostDate", "Likes", "Comments"]

SUCCESS = "success"
EMPTY = "empty"
SENTINEL = "sentinel"
STALLED = "stalled"
ERROR = "error"

OUTCOME_KINDS = (SUCCESS, EMPTY, SENTINEL, STALLED, ERROR)


@dataclass
class ExtractionRecord:
    """One extracted post."""

    page_url: str
    page_name: str
    content: str
    post_date: str = ""
    likes: str = ""
    comments: str = ""

    @classmethod
    def from_payload(cls, item: Dict[str, Any], origin_url: str) -> "ExtractionRecord":
        """Build a record from one object returned by the extraction script."""
        def text(key: str) -> str:
            value = item.get(key)
            return "" if value is None else str(value)

        return cls(
            page_url=text("pageUrl") or origin_url,
            page_name=text("pageName"),
            content=text("content"),
            post_date=text("postDate"),
            likes=text("likes"),
            comments=text("comments"),
        )

    def is_sentinel(self) -> bool:
        return self.page_name == SENTINEL_PAGE_NAME and self.content == SENTINEL_CONTENT

    def as_row(self) -> List[str]:
        return [self.page_url, self.page_name, self.content, self.post_date, self.likes, self.comments]


@dataclass
class Outcome:
    """Terminal result of processing one queued page."""

    kind: str
    records: List[ExtractionRecord] = field(default_factory=list)
    cause: Optional[str] = None

    @classmethod
    def success(cls, records: List[ExtractionRecord]) -> "Outcome":
        if not records:
            raise ValueError("success outcome needs at least one record")
        return cls(SUCCESS, list(records))

    @classmethod
    def empty(cls) -> "Outcome":
        return cls(EMPTY)

    @classmethod
    def sentinel(cls, record: ExtractionRecord) -> "Outcome":
        return cls(SENTINEL, [record])

    @classmethod
    def stalled(cls, cause: Optional[str] = None) -> "Outcome":
        return cls(STALLED, cause=cause)

    @classmethod
    def error(cls, cause: str) -> "Outcome":
        return cls(ERROR, cause=cause)

    @property
    def skipped(self) -> bool:
        """True when the page was given up on rather than found empty."""
        return self.kind in (STALLED, ERROR)


def classify_payload(records: List[ExtractionRecord]) -> Outcome:
    """
    Map an extraction payload to an outcome.

    An empty payload means no posts. A payload of exactly one sentinel record means
    the page has no posts view at all. Anything else is a success.
    """
    if not records:
        return Outcome.empty()
    if len(records) == 1 and records[0].is_sentinel():
        return Outcome.sentinel(records[0])
    return Outcome.success(records)
