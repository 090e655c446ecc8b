"""Computes destination paths for posts, comments and images."""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from config_loader import get_nested
from models import FRONTMATTER_FOLDER_FIELDS, Comment, Post
from url_utils import filename_from_url


class PathPlanner:
    """
    Pure path computation shared by every acquisition batch.

    Post directories are built from optional segments in fixed order: post
    type (only when several types are exported), year, month, a frontmatter
    field, then the slug (optionally prefixed with the publication date).
    """

    def __init__(self, config: Dict[str, Any], include_type_segment: bool = False):
        """
        Initialize planner.

        Args:
            config: Configuration dictionary
            include_type_segment: Add the post type as the first segment
        """
        self.output_dir = Path(get_nested(config, 'output.directory', 'output'))
        self.comments_dir = Path(get_nested(config, 'output.comments_directory', 'output-comments'))
        self.post_folders = get_nested(config, 'output.post_folders', True)
        self.prefix_date = get_nested(config, 'output.prefix_date', False)
        self.year_folders = get_nested(config, 'output.year_folders', False)
        self.month_folders = get_nested(config, 'output.month_folders', False)
        self.include_type_segment = include_type_segment

        folder_field = get_nested(config, 'output.frontmatter_folders')
        if folder_field and folder_field not in FRONTMATTER_FOLDER_FIELDS:
            raise ValueError(f"Unknown frontmatter folder field: {folder_field}")
        self.folder_accessor = FRONTMATTER_FOLDER_FIELDS[folder_field] if folder_field else None

    def base_segments(self, post: Post) -> List[str]:
        """Directory segments shared by a post and its comments."""
        segments = []
        published = post.meta.published or datetime.min

        if self.include_type_segment:
            segments.append(post.meta.type)

        if self.year_folders:
            segments.append(published.strftime('%Y'))

        if self.month_folders:
            segments.append(published.strftime('%m'))

        if self.folder_accessor is not None:
            value = self.folder_accessor(post.frontmatter)
            if value is not None:
                segments.append(str(value))

        slug = post.meta.slug
        if self.prefix_date:
            slug = published.strftime('%Y-%m-%d') + '-' + slug
        segments.append(slug)

        return segments

    def post_path(self, post: Post) -> Path:
        """Markdown file for ``post``: ``<dir>/index.md`` or ``<dir>.md``."""
        post_dir = self.output_dir.joinpath(*self.base_segments(post))
        if self.post_folders:
            return post_dir / 'index.md'
        return post_dir.with_name(post_dir.name + '.md')

    def comment_path(self, comment: Comment, post: Post, suffix: Optional[str] = None) -> Path:
        """
        YAML file for ``comment``, named by its epoch milliseconds.

        Args:
            comment: Comment to place
            post: Post the comment belongs to
            suffix: Optional tie-breaker appended to the file stem
        """
        millis = int(comment.timestamp.timestamp() * 1000) if comment.timestamp else 0
        stem = f"comment-{millis}" + (f"-{suffix}" if suffix else '')
        return self.comments_dir.joinpath(*self.base_segments(post), f"{stem}.yml")

    def image_path(self, post: Post, url: str) -> Path:
        """Image file next to the post's Markdown file."""
        return self.post_path(post).parent / 'images' / filename_from_url(url)


__all__ = ['PathPlanner']
