"""Per-run state shared across post conversions."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple


@dataclass
class ConversionContext:
    """
    Transient state accumulated while converting the posts of one run.

    Attributes:
        post_images: Image sources captured by the figure pre-pass per post id,
            in document order
        mismatches: (post_id, raw_count, captured_count) for posts whose raw
            image count differs from the captured count
        posts_converted: Number of posts converted so far
    """

    post_images: Dict[str, List[str]] = field(default_factory=dict)
    mismatches: List[Tuple[str, int, int]] = field(default_factory=list)
    posts_converted: int = 0

    def capture_images(self, post_id: str, sources: Iterable[str]) -> None:
        self.post_images.setdefault(post_id, []).extend(sources)

    def captured_count(self, post_id: str) -> int:
        return len(self.post_images.get(post_id, []))
