"""HTML cleaner that prepares WordPress post bodies for markdown conversion."""

import logging
import re
from typing import List

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from url_utils import filename_from_url, is_image_url

logger = logging.getLogger('wordpress_markdown_exporter.converters.htmlcleaner')

# Elements that end a run of loose inline content
BLOCK_TAGS = {
    'address', 'article', 'aside', 'audio', 'blockquote', 'dd', 'details', 'dialog', 'div',
    'dl', 'dt', 'fieldset', 'figcaption', 'figure', 'footer', 'form', 'h1', 'h2', 'h3', 'h4',
    'h5', 'h6', 'header', 'hgroup', 'hr', 'iframe', 'li', 'main', 'nav', 'noscript', 'ol', 'p',
    'pre', 'script', 'section', 'style', 'table', 'ul', 'video',
}

BLANK_LINE_PATTERN = re.compile(r'(?:\r?\n){2,}')


class HtmlCleaner:
    """Normalizes classic-editor markup so every paragraph is an element."""

    def __init__(self, logger: logging.Logger = None):
        """Initialize HTML cleaner with optional logger."""
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.converters.htmlcleaner')

    def clean(self, soup: BeautifulSoup) -> BeautifulSoup:
        """
        Main entry point to clean a parsed post body.

        Args:
            soup: BeautifulSoup fragment of one post body

        Returns:
            Cleaned BeautifulSoup object
        """
        self._remove_comments(soup)
        self._wrap_loose_paragraphs(soup)
        return soup

    def localize_images(self, soup: BeautifulSoup) -> int:
        """
        Point every remaining image at the post's local ``images/`` folder.

        Args:
            soup: BeautifulSoup fragment of one post body

        Returns:
            Number of image sources rewritten
        """
        rewritten = 0
        for img in soup.find_all('img'):
            src = img.get('src', '')
            if not is_image_url(src) or src.startswith('images/'):
                continue
            img['src'] = 'images/' + filename_from_url(src)
            rewritten += 1

        if rewritten:
            self.logger.debug(f"Localized {rewritten} image sources")
        return rewritten

    def _remove_comments(self, soup: BeautifulSoup) -> None:
        """Drop HTML comments, including Gutenberg block delimiters."""
        comments = soup.find_all(string=lambda text: isinstance(text, Comment))
        for comment in comments:
            comment.extract()
        if comments:
            self.logger.debug(f"Removed {len(comments)} comment nodes")

    def _wrap_loose_paragraphs(self, soup: BeautifulSoup) -> None:
        """Wrap top-level inline runs separated by blank lines into ``<p>`` elements."""
        rebuilt: List = []
        run: List = []

        def flush():
            if any(isinstance(node, Tag) or node.strip() for node in run):
                _strip_trailing_whitespace(run)
                paragraph = soup.new_tag('p')
                for node in run:
                    paragraph.append(node)
                rebuilt.append(paragraph)
            else:
                rebuilt.extend(run)
            run.clear()

        for child in list(soup.contents):
            child.extract()
            if isinstance(child, Tag):
                if child.name in BLOCK_TAGS:
                    flush()
                    rebuilt.append(child)
                else:
                    run.append(child)
            elif isinstance(child, NavigableString):
                parts = BLANK_LINE_PATTERN.split(str(child))
                for index, part in enumerate(parts):
                    if index > 0:
                        flush()
                    if part:
                        run.append(NavigableString(part))
        flush()

        for node in rebuilt:
            soup.append(node)


def _strip_trailing_whitespace(run: List) -> None:
    """Drop whitespace that closes a paragraph run before the next block."""
    while run and isinstance(run[-1], NavigableString):
        text = str(run[-1]).rstrip()
        if text:
            run[-1] = NavigableString(text)
            return
        run.pop()
