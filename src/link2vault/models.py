"""Data models for link2vault."""

import time
from dataclasses import asdict, dataclass, field
from typing import Optional

# ProcessingResult.status values
SUCCESS = "success"
REVIEW = "review"
SKIPPED = "skipped"
FAILED = "failed"

# Per-URL progress labels, in pipeline order
QUEUED = "queued"
CHECKING = "checking"
EXTRACTING = "extracting"
PROCESSING = "processing"
CREATING = "creating"
DONE = "done"
CANCELLED = "cancelled"

TERMINAL_STATUSES = frozenset({DONE, REVIEW, SKIPPED, FAILED, CANCELLED})

CANCELLED_ERROR = "Cancelled"
DUPLICATE_REASON = "Duplicate - note already exists in vault"


@dataclass(frozen=True)
class ExtractedContent:
    """Raw content fetched for one URL."""

    url: str
    title: str
    content: str
    author: Optional[str] = None
    date_published: Optional[str] = None
    word_count: int = 0
    type: str = "article"  # article, social-media
    platform: str = "web"  # web, x, linkedin, reddit
    status: str = "success"  # success, failed
    error: Optional[str] = None

    @classmethod
    def failed(cls, url: str, error: str) -> "ExtractedContent":
        return cls(url=url, title="", content="", status="failed", error=error)

    @classmethod
    def from_dict(cls, data: dict) -> "ExtractedContent":
        return cls(**data)


@dataclass(frozen=True)
class ProcessedNote:
    """AI-derived note for one successfully processed URL."""

    title: str
    summary: str
    key_takeaways: tuple[str, ...]
    suggested_folder: str
    suggested_tags: tuple[str, ...]
    type: str
    platform: str
    source: ExtractedContent

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessedNote":
        data = dict(data)
        data["key_takeaways"] = tuple(data.get("key_takeaways", ()))
        data["suggested_tags"] = tuple(data.get("suggested_tags", ()))
        data["source"] = ExtractedContent.from_dict(data["source"])
        return cls(**data)


@dataclass(frozen=True)
class ContentQuality:
    """Outcome of the low-quality content heuristics."""

    is_low_quality: bool = False
    reason: Optional[str] = None
    detail: Optional[str] = None


@dataclass(frozen=True)
class NotePreview:
    """A sampled existing note, shown to the model as a filing example."""

    folder: str
    title: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class TagGroup:
    """User-defined group of allowed tags."""

    name: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class VaultContext:
    """Snapshot of the vault inventory used to ground categorization."""

    folders: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    recent_notes: tuple[NotePreview, ...] = ()
    tag_groups: tuple[TagGroup, ...] = ()
    organization: str = "custom"  # para, custom


@dataclass(frozen=True)
class ProcessingResult:
    """Terminal outcome for a single URL in a batch."""

    url: str
    status: str
    note: Optional[ProcessedNote] = None
    folder: Optional[str] = None
    skip_reason: Optional[str] = None
    error: Optional[str] = None
    error_category: Optional[str] = None
    content_quality: Optional[ContentQuality] = None

    @classmethod
    def skipped(cls, url: str, reason: str = DUPLICATE_REASON) -> "ProcessingResult":
        return cls(url=url, status=SKIPPED, skip_reason=reason)

    @classmethod
    def failed(
        cls, url: str, error: str, category: Optional[str] = None
    ) -> "ProcessingResult":
        return cls(url=url, status=FAILED, error=error, error_category=category)

    @classmethod
    def cancelled(cls, url: str) -> "ProcessingResult":
        return cls(url=url, status=FAILED, error=CANCELLED_ERROR)

    @property
    def is_cancelled(self) -> bool:
        return self.status == FAILED and self.error == CANCELLED_ERROR

    @property
    def progress_label(self) -> str:
        """The per-URL status label this result settles to."""
        if self.is_cancelled:
            return CANCELLED
        if self.status == SUCCESS:
            return DONE
        return self.status

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessingResult":
        data = dict(data)
        if data.get("note"):
            data["note"] = ProcessedNote.from_dict(data["note"])
        if data.get("content_quality"):
            data["content_quality"] = ContentQuality(**data["content_quality"])
        return cls(**data)


@dataclass(frozen=True)
class ErrorMetadata:
    """User-facing description of a failure and what to do about it."""

    category: str
    user_message: str
    technical_details: str
    suggested_action: str  # retry, open, skip, settings
    is_retryable: bool
    timestamp: str
    retry_count: Optional[int] = None


@dataclass
class ProcessingState:
    """Observable snapshot of a batch in progress."""

    active: bool = False
    urls: list[str] = field(default_factory=list)
    results: list[ProcessingResult] = field(default_factory=list)
    url_statuses: dict[str, str] = field(default_factory=dict)
    started_at: float = field(default_factory=time.time)
    cancelled: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "active": self.active,
            "urls": list(self.urls),
            "results": [r.to_dict() for r in self.results],
            "url_statuses": dict(self.url_statuses),
            "started_at": self.started_at,
            "cancelled": self.cancelled,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessingState":
        return cls(
            active=data.get("active", False),
            urls=list(data.get("urls", [])),
            results=[ProcessingResult.from_dict(r) for r in data.get("results", [])],
            url_statuses=dict(data.get("url_statuses", {})),
            started_at=data.get("started_at", 0.0),
            cancelled=data.get("cancelled", False),
            error=data.get("error"),
        )
