"""Renders posts to Markdown files with frontmatter."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from config_loader import get_nested
from models import Post

from .path_planner import PathPlanner


class MarkdownExporter:
    """
    Builds the Markdown write batch.

    Each file is a frontmatter block followed by the converted body::

        ---
        title: "Hello"
        date: "2020-05-04"
        categories:
          - "news"
        ---

        Body text
    """

    def __init__(
        self,
        config: Dict[str, Any],
        planner: PathPlanner,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the markdown exporter.

        Args:
            config: Configuration dictionary
            planner: Path planner for destinations
            logger: Logger instance
        """
        self.config = config
        self.planner = planner
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.exporters.markdownexporter')
        self.frontmatter_exclude = list(get_nested(config, 'output.frontmatter_exclude', []) or [])

    def candidates(self, posts: List[Post]) -> List[Tuple[Post, Path, str]]:
        """Return (post, destination, label) for every post."""
        label_with_type = self.planner.include_type_segment
        candidates = []
        for post in posts:
            label = f"{post.meta.type} - {post.meta.slug}" if label_with_type else post.meta.slug
            candidates.append((post, self.planner.post_path(post), label))
        return candidates

    async def load(self, post: Post) -> bytes:
        """Loader used by the acquisition pipeline."""
        return self.render(post).encode('utf-8')

    def render(self, post: Post) -> str:
        """Render ``post`` as frontmatter plus Markdown body."""
        return f"---\n{self.render_frontmatter(post)}---\n\n{post.content}\n"

    def render_frontmatter(self, post: Post) -> str:
        """
        Render frontmatter lines, skipping excluded keys.

        Scalars are double-quoted with backslashes and quotes escaped. Lists
        are rendered as one quoted item per line; an empty list writes no line.
        """
        lines = []
        for key, value in post.frontmatter.to_dict().items():
            if key in self.frontmatter_exclude:
                continue

            if isinstance(value, list):
                if not value:
                    continue
                items = ''.join(f'\n  - {_quote(item)}' for item in value)
                lines.append(f"{key}:{items}\n")
            else:
                lines.append(f"{key}: {_quote(value)}\n")

        return ''.join(lines)


def _quote(value: Any) -> str:
    text = '' if value is None else str(value)
    return '"' + text.replace('\\', '\\\\').replace('"', '\\"') + '"'


__all__ = ['MarkdownExporter']
