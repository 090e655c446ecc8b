"""Discovers images in the export and merges them into posts."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from models import UNATTACHED, ImageRecord, MalformedRecordError, Post
from url_utils import (
    SCRAPED_IMAGE_PATTERN,
    clean_filename,
    filename_from_url,
    is_image_url,
    resolve_url,
)

from .export_reader import first_value

logger = logging.getLogger('wordpress_markdown_exporter.extractors.imagecollector')


class ImageCollector:
    """Finds attached and scraped images and attaches them to posts."""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.extractors.imagecollector')

    def collect_attached(self, items: Iterable[Dict[str, Any]]) -> List[ImageRecord]:
        """Collect image attachments, keyed by attachment id and parent post id."""
        images = []
        for item in items:
            if first_value(item, 'post_type') != 'attachment':
                continue
            url = first_value(item, 'attachment_url')
            if not is_image_url(url):
                continue
            images.append(ImageRecord(
                id=first_value(item, 'post_id'),
                post_id=first_value(item, 'post_parent'),
                url=url,
            ))

        self.logger.info(f"{len(images)} attached images found")
        return images

    def collect_scraped(self, items: Iterable[Dict[str, Any]], post_types: List[str]) -> List[ImageRecord]:
        """
        Collect images referenced by ``<img>`` tags in post bodies.

        Sources are resolved against the post link.

        Raises:
            MalformedRecordError: If a post with images has a non-absolute link
        """
        images = []
        for item in items:
            if first_value(item, 'post_type') not in post_types:
                continue

            post_id = first_value(item, 'post_id')
            content = first_value(item, 'encoded')
            link = first_value(item, 'link')

            for match in SCRAPED_IMAGE_PATTERN.finditer(content):
                try:
                    url = resolve_url(match.group(1), link)
                except ValueError as e:
                    raise MalformedRecordError(str(e), post_id) from e
                images.append(ImageRecord(id=UNATTACHED, post_id=post_id, url=url))

        self.logger.info(f"{len(images)} images scraped from post body content")
        return images

    def merge(self, images: Iterable[ImageRecord], posts: List[Post]) -> None:
        """
        Attach each image to the posts it belongs to.

        An image belongs to a post when it was uploaded to it or when it is
        the post's cover image. The cover case also sets ``featured_image``.
        """
        for image in images:
            for post in posts:
                should_attach = image.post_id == post.meta.id

                if image.id != UNATTACHED and image.id == post.meta.cover_image_id:
                    should_attach = True
                    post.frontmatter.featured_image = 'images/' + filename_from_url(image.url)

                if should_attach:
                    post.meta.add_image_url(image.url)

    def clean_images(self, posts: List[Post], from_folder: Optional[str]) -> int:
        """
        Rewrite resized and scaled upload variants to their original filename.

        Only runs when images are copied from a local uploads folder, where
        the originals are the files that exist.

        Returns:
            Number of image URLs rewritten
        """
        if not from_folder:
            self.logger.warning("Images are not read from a local folder, skipping image filename cleaning")
            return 0

        rewritten = 0
        for post in posts:
            cleaned_urls: List[str] = []
            for url in post.meta.image_urls:
                prefix, _, segment = url.rpartition('/')
                cleaned_segment = clean_filename(segment)
                if cleaned_segment != segment:
                    self._rewrite_references(post, filename_from_url(url), filename_from_url(cleaned_segment))
                    url = f"{prefix}/{cleaned_segment}"
                    rewritten += 1
                if url not in cleaned_urls:
                    cleaned_urls.append(url)
            post.meta.image_urls = cleaned_urls

        if rewritten:
            self.logger.info(f"Cleaned {rewritten} resized image filenames")
        return rewritten

    def _rewrite_references(self, post: Post, old_filename: str, new_filename: str) -> None:
        post.content = post.content.replace(old_filename, new_filename)
        featured = post.frontmatter.featured_image
        if featured and featured.rsplit('/', 1)[-1] == old_filename:
            post.frontmatter.featured_image = 'images/' + new_filename


__all__ = ['ImageCollector']
