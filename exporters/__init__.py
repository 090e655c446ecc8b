"""Export package for the WordPress to Markdown pipeline.

This package turns extracted posts into the three acquisition batches and
computes where every file goes.

Package Structure:
- path_planner: Destination paths for posts, comments and images
- markdown_exporter: Frontmatter and Markdown rendering for posts
- comment_exporter: YAML rendering for comments, with optional field encryption
- comment_encryptor: RSA public-key encryption of comment fields
- image_manager: Image download or local copy

Configuration Referenced:
- output.*: Directory layout and frontmatter exclusion
- comments.keys_to_encrypt / comments.public_key: Comment field encryption
- images.from_folder / images.request_timeout: Image sources
"""

from .comment_encryptor import CommentEncryptor
from .comment_exporter import CommentExporter
from .image_manager import ImageManager, MissingLocalImageError
from .markdown_exporter import MarkdownExporter
from .path_planner import PathPlanner

__all__ = [
    'CommentEncryptor',
    'CommentExporter',
    'ImageManager',
    'MissingLocalImageError',
    'MarkdownExporter',
    'PathPlanner'
]
