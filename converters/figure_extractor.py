"""Structural pre-pass that turns image figures and galleries into gallery placeholders."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag

from models import CaptionConflictError, MalformedRecordError
from url_utils import clean_filename, filename_from_url, is_image_url

logger = logging.getLogger('wordpress_markdown_exporter.converters.figureextractor')

PLACEHOLDER_CLASS = 'wp-export-gallery'

GALLERY_CLASSES = ('wp-block-gallery', 'gallery')


@dataclass
class GalleryGroup:
    """Consecutive image blocks that render as one gallery."""

    caption: str = ''
    items: List[Tuple[str, str]] = field(default_factory=list)
    nodes: List[Tag] = field(default_factory=list)


class FigureExtractor:
    """
    Finds single-image blocks and galleries among the top-level elements of a
    post body and replaces each run of them with one placeholder figure.

    A placeholder looks like::

        <figure class="wp-export-gallery" data-caption="Overall">
          <img src="images/one.jpg" alt="First">
          <img src="images/two.jpg" alt="">
        </figure>
    """

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.converters.figureextractor')

    def extract(self, soup: BeautifulSoup, post_id: Optional[str] = None) -> List[GalleryGroup]:
        """
        Replace image blocks in ``soup`` with gallery placeholders.

        Args:
            soup: Cleaned BeautifulSoup fragment of one post body
            post_id: Post id used in error messages

        Returns:
            The gallery groups that were inserted, in document order

        Raises:
            CaptionConflictError: If an image has alt text and a different caption
            MalformedRecordError: If a figure is structurally inconsistent
        """
        groups: List[GalleryGroup] = []
        current: Optional[GalleryGroup] = None

        for node in list(soup.contents):
            if isinstance(node, NavigableString):
                if node.strip():
                    current = None
                continue
            if not isinstance(node, Tag):
                continue

            if self._is_gallery(node):
                caption, items = self._gallery_items(node, post_id)
                if not items:
                    current = None
                    continue
                if caption or current is None:
                    current = GalleryGroup(caption=caption)
                    groups.append(current)
                current.items.extend(items)
                current.nodes.append(node)
                continue

            single = self._single_image(node, post_id)
            if single is None:
                current = None
                continue
            if current is None:
                current = GalleryGroup()
                groups.append(current)
            current.items.append(single)
            current.nodes.append(node)

        for group in groups:
            group.items = _dedupe_items(group.items)
            self._replace_with_placeholder(soup, group)

        if groups:
            self.logger.debug(
                f"Post {post_id}: extracted {len(groups)} galleries "
                f"({sum(len(group.items) for group in groups)} images)"
            )
        return groups

    def _replace_with_placeholder(self, soup: BeautifulSoup, group: GalleryGroup) -> None:
        placeholder = soup.new_tag('figure')
        placeholder['class'] = PLACEHOLDER_CLASS
        placeholder['data-caption'] = group.caption
        for src, caption in group.items:
            img = soup.new_tag('img')
            img['src'] = src
            img['alt'] = caption
            placeholder.append(img)

        group.nodes[0].insert_before(placeholder)
        for node in group.nodes:
            node.extract()

    @staticmethod
    def _is_gallery(node: Tag) -> bool:
        if node.name != 'figure':
            return False
        classes = node.get('class', [])
        if any(cls in GALLERY_CLASSES for cls in classes):
            return True
        return node.find('figure') is not None

    def _gallery_items(self, node: Tag, post_id: Optional[str]) -> Tuple[str, List[Tuple[str, str]]]:
        """Return the overall caption and ordered (src, caption) items of a gallery."""
        captions = node.find_all('figcaption', recursive=False)
        if len(captions) > 1:
            raise MalformedRecordError("gallery has more than one caption element", post_id)
        caption = _element_text(captions[0]) if captions else ''

        items: List[Tuple[str, str]] = []
        nested = node.find_all('figure')
        if nested:
            for figure in nested:
                item = self._figure_image(figure, post_id)
                if item is not None:
                    items.append(item)
        else:
            for img in node.find_all('img'):
                if not is_image_url(img.get('src')):
                    continue
                items.append(self._image_item(img, img.get('alt', '').strip(), post_id))

        return caption, items

    def _single_image(self, node: Tag, post_id: Optional[str]) -> Optional[Tuple[str, str]]:
        """Return (src, caption) when ``node`` is a block holding exactly one image."""
        if node.name == 'figure':
            return self._figure_image(node, post_id)

        img = _lone_image(node)
        if img is None or not is_image_url(img.get('src')):
            return None
        return self._image_item(img, img.get('alt', '').strip(), post_id)

    def _figure_image(self, figure: Tag, post_id: Optional[str]) -> Optional[Tuple[str, str]]:
        images = figure.find_all('img')
        if not images:
            return None
        if len(images) > 1:
            raise MalformedRecordError(
                f"figure holds {len(images)} images where one was expected", post_id
            )

        captions = figure.find_all('figcaption')
        if len(captions) > 1:
            raise MalformedRecordError("figure has more than one caption element", post_id)

        img = images[0]
        if not is_image_url(img.get('src')):
            return None
        alt = img.get('alt', '').strip()
        figcaption = _element_text(captions[0]) if captions else ''
        if alt and figcaption and alt != figcaption:
            raise CaptionConflictError(
                f"image {img.get('src', '')} has alt text '{alt}' and caption '{figcaption}'",
                post_id
            )
        return self._image_item(img, alt or figcaption, post_id)

    def _image_item(self, img: Tag, caption: str, post_id: Optional[str]) -> Tuple[str, str]:
        src = img.get('src', '')
        link = img.find_parent('a')
        if link is not None:
            href = link.get('href', '')
            if is_image_url(href) and (
                clean_filename(filename_from_url(href)) != clean_filename(filename_from_url(src))
            ):
                raise MalformedRecordError(
                    f"linked image points at {href} but displays {src}", post_id
                )
        return 'images/' + filename_from_url(src), caption


def _lone_image(node: Tag) -> Optional[Tag]:
    """Return the only image inside a paragraph/link chain, or the node itself if it is one."""
    if node.name == 'img':
        return node
    if node.name not in ('p', 'a'):
        return None

    children = [
        child for child in node.contents
        if isinstance(child, Tag) or (isinstance(child, NavigableString) and child.strip())
    ]
    if len(children) != 1 or not isinstance(children[0], Tag):
        return None
    return _lone_image(children[0])


def _element_text(element: Tag) -> str:
    return ' '.join(element.get_text().split())


def _dedupe_items(items: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
    seen = set()
    unique = []
    for src, caption in items:
        if src in seen:
            continue
        seen.add(src)
        unique.append((src, caption))
    return unique


__all__ = ['FigureExtractor', 'GalleryGroup', 'PLACEHOLDER_CLASS']
