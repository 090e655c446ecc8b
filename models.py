"""Data models for the WordPress export to Markdown pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Image id used for images scraped from post bodies. It never matches a
# cover-image id, so scraped images only join the post they came from.
UNATTACHED = "unattached"


class ItemStatus(Enum):
    """Outcome of a single acquisition work item."""
    WRITTEN = "written"
    FAILED = "failed"


@dataclass
class Comment:
    """An approved comment belonging to exactly one post."""

    id: str
    parent_id: str
    message: str
    name: str
    email: str
    date: str
    approved: bool = True
    timestamp: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the flat key set written to comment files."""
        return {
            '_id': self.id,
            '_parent': self.parent_id,
            'message': self.message,
            'name': self.name,
            'email': self.email,
            'date': self.date,
        }


@dataclass
class PostMeta:
    """Post metadata used by the pipeline but never written to frontmatter."""

    id: str
    slug: str
    type: str
    cover_image_id: Optional[str] = None
    published: Optional[datetime] = None
    image_urls: List[str] = field(default_factory=list)

    def add_image_url(self, url: str) -> bool:
        """Append ``url`` unless already present. Returns True if it was added."""
        if url in self.image_urls:
            return False
        self.image_urls.append(url)
        return True


@dataclass
class Frontmatter:
    """Frontmatter fields in output order."""

    title: str
    date: str
    old_url: str
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    featured_image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Ordered mapping of frontmatter keys; ``featured_image`` only when set."""
        data: Dict[str, Any] = {
            'title': self.title,
            'date': self.date,
            'old_url': self.old_url,
            'categories': list(self.categories),
            'tags': list(self.tags),
        }
        if self.featured_image is not None:
            data['featured_image'] = self.featured_image
        return data


def _first_or_none(values: List[str]) -> Optional[str]:
    return values[0] if values else None


# Frontmatter fields that may name an output folder segment
FRONTMATTER_FOLDER_FIELDS = {
    'title': lambda frontmatter: frontmatter.title or None,
    'category': lambda frontmatter: _first_or_none(frontmatter.categories),
    'tag': lambda frontmatter: _first_or_none(frontmatter.tags),
}


@dataclass
class Post:
    """A post (or page, or custom type) with its converted body and comments."""

    meta: PostMeta
    frontmatter: Frontmatter
    content: str = ''
    comments: List[Comment] = field(default_factory=list)


@dataclass
class ImageRecord:
    """An image discovered in the export, before it is merged into posts."""

    id: str
    post_id: str
    url: str


@dataclass
class WorkItem:
    """One independent fetch-or-write job of an acquisition batch."""

    source: Any
    destination_path: Path
    label: str
    delay: float = 0.0


@dataclass
class BatchReport:
    """Aggregate outcome of one acquisition batch."""

    name: str
    executed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    regenerated: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)

    def record(self, label: str, status: ItemStatus, error: Optional[str] = None) -> None:
        """Record the outcome of an executed item."""
        self.executed += 1
        if status == ItemStatus.WRITTEN:
            self.succeeded += 1
        else:
            self.failed += 1
            self.failures.append((label, error or ''))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize report to dictionary."""
        return {
            'name': self.name,
            'executed': self.executed,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'skipped': self.skipped,
            'regenerated': self.regenerated,
            'failures': [{'label': label, 'error': error} for label, error in self.failures],
        }


class MalformedRecordError(Exception):
    """A record in the export is structurally inconsistent and cannot be extracted."""

    def __init__(self, message: str, post_id: Optional[str] = None):
        self.post_id = post_id
        if post_id is not None:
            message = f"post {post_id}: {message}"
        super().__init__(message)


class CaptionConflictError(MalformedRecordError):
    """An image carries both alt text and a caption element, and they differ."""
