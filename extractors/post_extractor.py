"""Builds Post records from a decoded WordPress export."""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

from config_loader import get_nested
from converters import ConversionContext, MarkdownConverter
from models import Comment, Frontmatter, MalformedRecordError, Post, PostMeta

from .dates import DateFormatter
from .export_reader import ExportParseError, first_value
from .image_collector import ImageCollector

logger = logging.getLogger('wordpress_markdown_exporter.extractors.postextractor')

# Internal WordPress types that never become content
EXCLUDED_POST_TYPES = (
    'attachment',
    'revision',
    'nav_menu_item',
    'custom_css',
    'customize_changeset',
    'wp_block',
    'wp_navigation',
    'wp_template',
    'wp_template_part',
    'wp_global_styles',
    'oembed_cache',
    'user_request',
)

EXCLUDED_STATUSES = ('trash', 'draft')


class PostExtractor:
    """Extracts posts, their comments and their images from an export tree."""

    def __init__(
        self,
        config: Dict[str, Any],
        converter: Optional[MarkdownConverter] = None,
        logger: logging.Logger = None
    ):
        """
        Initialize extractor.

        Args:
            config: Configuration dictionary
            converter: Markdown converter reused for every post body
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.extractors.postextractor')
        self.converter = converter or MarkdownConverter(config=config)
        self.dates = DateFormatter(config)
        self.image_collector = ImageCollector()
        self.context = ConversionContext()
        self.post_types: List[str] = []

        self.only_posts = [str(post_id) for post_id in get_nested(config, 'posts.only_posts', []) or []]
        self.blocked_categories = get_nested(config, 'filters.categories', []) or []

    def extract(self, tree: Dict[str, Any]) -> List[Post]:
        """
        Extract every retained post with merged images.

        Args:
            tree: Decoded export tree from ExportReader

        Returns:
            List of Post objects in export order, grouped by post type

        Raises:
            ExportParseError: If the tree has no channel
            MalformedRecordError: If a retained record is inconsistent
        """
        items = self._items(tree)
        self.post_types = self.get_post_types(items)
        posts = self.collect_posts(items, self.post_types)

        images = []
        if get_nested(self.config, 'images.save_attached', True):
            images.extend(self.image_collector.collect_attached(items))
        if get_nested(self.config, 'images.save_scraped', True):
            images.extend(self.image_collector.collect_scraped(items, self.post_types))

        self.image_collector.merge(images, posts)
        self.image_collector.clean_images(posts, get_nested(self.config, 'images.from_folder', ''))

        return posts

    def get_post_types(self, items: List[Dict[str, Any]]) -> List[str]:
        """Return the post types to process, in first-seen order."""
        if not get_nested(self.config, 'posts.include_other_types', False):
            return ['post']

        types: List[str] = []
        for item in items:
            post_type = first_value(item, 'post_type')
            if post_type and post_type not in EXCLUDED_POST_TYPES and post_type not in types:
                types.append(post_type)
        return types

    def collect_posts(self, items: List[Dict[str, Any]], post_types: List[str]) -> List[Post]:
        all_posts: List[Post] = []

        for post_type in post_types:
            posts_for_type = [
                self.build_post(item, post_type)
                for item in items
                if self._is_retained(item, post_type)
            ]

            if len(post_types) > 1:
                self.logger.info(f'{len(posts_for_type)} "{post_type}" posts found')
            all_posts.extend(posts_for_type)

        if len(post_types) == 1:
            self.logger.info(f"{len(all_posts)} posts found")

        if self.context.mismatches:
            self.logger.warning(
                f"{len(self.context.mismatches)} posts had an image count mismatch during conversion"
            )
        return all_posts

    def build_post(self, item: Dict[str, Any], post_type: str) -> Post:
        """Build one Post from an export item."""
        post_id = first_value(item, 'post_id')

        try:
            date, published = self.dates.post_date(
                first_value(item, 'pubDate'), first_value(item, 'post_date_gmt')
            )
        except ValueError as e:
            raise MalformedRecordError(str(e), post_id) from e

        meta = PostMeta(
            id=post_id,
            slug=unquote(first_value(item, 'post_name')),
            type=post_type,
            cover_image_id=self._cover_image_id(item),
            published=published,
        )
        frontmatter = Frontmatter(
            title=first_value(item, 'title'),
            date=date,
            old_url=first_value(item, 'link'),
            categories=[
                category for category in self._terms(item, 'category')
                if category not in self.blocked_categories
            ],
            tags=self._terms(item, 'post_tag'),
        )

        content, _ = self.converter.convert_post(first_value(item, 'encoded'), self.context, post_id)

        return Post(
            meta=meta,
            frontmatter=frontmatter,
            content=content,
            comments=self._comments(item, post_id),
        )

    def _items(self, tree: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            channel = tree['rss']['channel'][0]
        except (KeyError, IndexError, TypeError) as e:
            raise ExportParseError("Export has no <channel> element") from e
        if not isinstance(channel, dict):
            return []
        return [item for item in channel.get('item', []) if isinstance(item, dict)]

    def _is_retained(self, item: Dict[str, Any], post_type: str) -> bool:
        if first_value(item, 'post_type') != post_type:
            return False
        if first_value(item, 'status') in EXCLUDED_STATUSES:
            return False
        if self.only_posts and first_value(item, 'post_id') not in self.only_posts:
            return False
        return True

    @staticmethod
    def _cover_image_id(item: Dict[str, Any]) -> Optional[str]:
        for postmeta in item.get('postmeta', []):
            if isinstance(postmeta, dict) and first_value(postmeta, 'meta_key') == '_thumbnail_id':
                return first_value(postmeta, 'meta_value') or None
        return None

    @staticmethod
    def _terms(item: Dict[str, Any], domain: str) -> List[str]:
        terms: List[str] = []
        for category in item.get('category', []):
            if not isinstance(category, dict):
                continue
            attributes = category.get('$', {})
            if attributes.get('domain') != domain or 'nicename' not in attributes:
                continue
            term = unquote(attributes['nicename'])
            if term not in terms:
                terms.append(term)
        return terms

    def _comments(self, item: Dict[str, Any], post_id: str) -> List[Comment]:
        comments = []
        for raw in item.get('comment', []):
            if not isinstance(raw, dict) or first_value(raw, 'comment_approved') != '1':
                continue

            try:
                date, timestamp = self.dates.comment_date(first_value(raw, 'comment_date'))
            except ValueError as e:
                raise MalformedRecordError(f"comment date: {e}", post_id) from e

            comments.append(Comment(
                id=first_value(raw, 'comment_id'),
                parent_id=first_value(raw, 'comment_parent'),
                message=first_value(raw, 'comment_content'),
                name=first_value(raw, 'comment_author'),
                email=first_value(raw, 'comment_author_email'),
                date=date,
                timestamp=timestamp,
            ))
        return comments


def extract_posts(tree: Dict[str, Any], config: Dict[str, Any]) -> List[Post]:
    """Convenience wrapper around PostExtractor.extract."""
    return PostExtractor(config).extract(tree)


__all__ = ['PostExtractor', 'extract_posts', 'EXCLUDED_POST_TYPES']
