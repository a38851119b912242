from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple, Self
import uuid


class RejectReason(Enum):
    malformed = "malformed"
    scheme = "scheme"
    loopback = "loopback"
    private_range = "private_range"


@dataclass(frozen=True)
class ValidationVerdict:
    allowed: bool
    reason: RejectReason | None = None

    @classmethod
    def reject(cls, reason: RejectReason) -> Self:
        return cls(allowed=False, reason=reason)


ALLOWED = ValidationVerdict(allowed=True)


@dataclass(frozen=True)
class FetchResult:
    url: str
    status: int
    content_type: str
    body: bytes
    truncated: bool = False
    encoding: str = "utf-8"

    def text(self) -> str:
        try:
            return self.body.decode(self.encoding, errors="replace")
        except LookupError:
            # Unknown charset label.
            return self.body.decode("utf-8", errors="replace")


class FieldKind(Enum):
    og_image = "og:image"
    twitter_image = "twitter:image"
    generic_image = "image"
    og_title = "og:title"
    twitter_title = "twitter:title"
    title_tag = "title"


class MetaField(NamedTuple):
    kind: FieldKind
    value: str


@dataclass(frozen=True)
class ExtractionResult:
    value: str | None = None
    source: FieldKind | None = None


NOTHING = ExtractionResult()


class Recipe:
    def __init__(
        self,
        *,
        id: str,
        title: str | None = None,
        url: str | None = None,
        text: str | None = None,
        image: str | None = None,
        created: str | None = None,
        deleted: bool = False,
    ) -> None:
        self.id = id
        self.title = title
        self.url = url
        self.text = text
        self.image = image
        self.created = created
        self.deleted = deleted

    @classmethod
    def new(cls, **kwargs: Any) -> Self:
        created = datetime.now(timezone.utc).isoformat()
        return cls(id=uuid.uuid4().hex, created=created, **kwargs)

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, title={self.title})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "text": self.text,
            "image": self.image,
            "created": self.created,
            "deleted": self.deleted,
        }
