"""Renders comments to YAML and prepares the comment write batch."""

import logging
from typing import Any, Dict, List, Optional, Tuple

import yaml

from models import Comment, Post

from .comment_encryptor import CommentEncryptor
from .path_planner import PathPlanner

logger = logging.getLogger('wordpress_markdown_exporter.exporters.commentexporter')


class CommentExporter:
    """Builds comment write candidates and renders each comment file."""

    def __init__(
        self,
        planner: PathPlanner,
        keys_to_encrypt: Optional[List[str]] = None,
        encryptor: Optional[CommentEncryptor] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the comment exporter.

        Args:
            planner: Path planner for destinations
            keys_to_encrypt: Serialized comment keys to encrypt
            encryptor: Object with ``encrypt(plaintext) -> str``; required when
                keys_to_encrypt is not empty
            logger: Logger instance
        """
        self.planner = planner
        self.keys_to_encrypt = list(keys_to_encrypt or [])
        self.encryptor = encryptor
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.exporters.commentexporter')

        if self.keys_to_encrypt and self.encryptor is None:
            raise ValueError("An encryptor is required when comment keys are encrypted")

    def candidates(self, posts: List[Post]) -> List[Tuple[Comment, Any, str]]:
        """
        Return (comment, destination, label) for every comment of every post.

        Comments of one post that share a millisecond get their id appended
        to the file name.
        """
        candidates = []
        for post in posts:
            seen_paths = set()
            for comment in post.comments:
                destination = self.planner.comment_path(comment, post)
                if destination in seen_paths:
                    destination = self.planner.comment_path(comment, post, suffix=comment.id)
                seen_paths.add(destination)
                candidates.append((comment, destination, destination.name))
        return candidates

    async def load(self, comment: Comment) -> bytes:
        """Loader used by the acquisition pipeline."""
        return self.render(comment).encode('utf-8')

    def render(self, comment: Comment) -> str:
        """Render ``comment`` as a YAML document."""
        data = comment.to_dict()
        data['message'] = data['message'].replace('\r', '')

        for key in self.keys_to_encrypt:
            self._encrypt_field(data, key, comment.id)

        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)

    def _encrypt_field(self, data: Dict[str, Any], key: str, comment_id: str) -> None:
        value = data.get(key)
        if not value:
            self.logger.warning(f"Comment {comment_id}: '{key}' is empty, nothing to encrypt")
            return
        try:
            data[key] = self.encryptor.encrypt(str(value))
        except ValueError as e:
            del data[key]
            self.logger.warning(f"Comment {comment_id}: could not encrypt '{key}', field omitted ({e})")


__all__ = ['CommentExporter']
