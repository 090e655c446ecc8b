"""Markdown converter orchestrator for WordPress post bodies."""

import html
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from markdownify import MarkdownConverter as MarkdownifyConverter

from .conversion_context import ConversionContext
from .figure_extractor import PLACEHOLDER_CLASS, FigureExtractor, GalleryGroup
from .html_cleaner import HtmlCleaner

logger = logging.getLogger('wordpress_markdown_exporter.converters.markdownconverter')

RAW_IMG_PATTERN = re.compile(r'<img\b', re.IGNORECASE)

SOCIAL_EMBED_CLASSES = ('twitter-tweet', 'instagram-media')

# Attributes that browsers treat as flags; bs4 serializes them as attr=""
BOOLEAN_ATTRIBUTES = (
    'allowfullscreen', 'async', 'autoplay', 'controls', 'defer', 'loop', 'muted', 'playsinline',
)
BOOLEAN_ATTRIBUTE_PATTERN = re.compile(r'\s(%s)=""' % '|'.join(BOOLEAN_ATTRIBUTES))

LIST_MARKER_PATTERN = re.compile(r'^(\s*)(-|\d+\.) +', re.MULTILINE)


class SourceOrderFormatter(HTMLFormatter):
    """Minimal HTML formatter that keeps attributes in document order."""

    def attributes(self, tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


RAW_FORMATTER = SourceOrderFormatter(entity_substitution=EntitySubstitution.substitute_xml)


class MarkdownConverter(MarkdownifyConverter):
    """
    Converts WordPress post HTML to Markdown.

    This class extends markdownify.MarkdownConverter to provide:
    - Gallery shortcode output for figures and runs of images
    - Raw passthrough of social embeds, CodePen containers, scripts and media
    - Image source localization to the post's images folder

    One instance is reused for every post of a run. All per-run state lives in
    the ConversionContext passed to convert_post.
    """

    def __init__(self, logger: logging.Logger = None, config: Dict[str, Any] = None, **kwargs):
        """Initialize markdown converter with logger and configuration."""
        markdownify_options = {
            'heading_style': 'ATX',
            'bullets': '-',
            'code_language': '',
            'wrap': False,
        }
        markdownify_options.update(kwargs)

        super().__init__(**markdownify_options)

        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.converters.markdownconverter')
        self.config = config or {}

        self.html_cleaner = HtmlCleaner(self.logger)
        self.figure_extractor = FigureExtractor(self.logger)

        self.save_scraped_images = self.config.get('images', {}).get('save_scraped', True)

    def convert_post(
        self,
        raw_html: str,
        context: Optional[ConversionContext] = None,
        post_id: Optional[str] = None
    ) -> Tuple[str, ConversionContext]:
        """
        Convert one post body from HTML to Markdown with the full pipeline.

        Args:
            raw_html: The post's encoded content
            context: Per-run conversion state (a new one is created if omitted)
            post_id: Post id used for image bookkeeping and error messages

        Returns:
            Tuple of (markdown, context)

        Raises:
            MalformedRecordError: If the body holds an inconsistent image structure
        """
        context = context if context is not None else ConversionContext()
        post_key = post_id or ''

        # Step 1: Parse and clean
        soup = self._parse_html(raw_html or '')
        soup = self.html_cleaner.clean(soup)

        # Step 2: Figures and galleries become placeholders
        groups = self.figure_extractor.extract(soup, post_id)

        # Step 3: Point remaining images at the local images folder
        if self.save_scraped_images:
            self.html_cleaner.localize_images(soup)

        # Step 4: Compare what was captured against a plain scan of the raw body
        self._check_image_count(raw_html or '', groups, context, post_key)

        # Step 5: Render
        raw_markdown = self.convert_soup(soup)

        # Step 6: Post-process
        markdown = self._post_process_markdown(raw_markdown)

        context.posts_converted += 1
        return markdown, context

    def _parse_html(self, html_content: str) -> BeautifulSoup:
        """Parse a post body fragment with BeautifulSoup."""
        return BeautifulSoup(html_content, 'html.parser')

    def _check_image_count(
        self,
        raw_html: str,
        groups: List[GalleryGroup],
        context: ConversionContext,
        post_key: str
    ) -> None:
        context.capture_images(post_key, (src for group in groups for src, _ in group.items))

        raw_count = len(RAW_IMG_PATTERN.findall(raw_html))
        captured_count = context.captured_count(post_key)
        if raw_count != captured_count:
            context.mismatches.append((post_key, raw_count, captured_count))
            self.logger.warning(
                f"Post {post_key}: found {raw_count} <img> tags in the body but captured "
                f"{captured_count} images"
            )

    def _post_process_markdown(self, markdown: str) -> str:
        """Apply post-processing to generated markdown."""
        markdown = LIST_MARKER_PATTERN.sub(r'\1\2 ', markdown)
        return self._final_cleanup(markdown)

    def _final_cleanup(self, markdown: str) -> str:
        """Final cleanup pass - remove excessive blank lines."""
        while '\n\n\n' in markdown:
            markdown = markdown.replace('\n\n\n', '\n\n')
        return markdown.strip('\n')

    def _raw_html(self, el) -> str:
        """Serialize an element verbatim with flag attributes un-valued."""
        return BOOLEAN_ATTRIBUTE_PATTERN.sub(r' \1', el.decode(formatter=RAW_FORMATTER))

    def convert_blockquote(self, el, text, parent_tags=None, **kwargs):
        """Keep tweet and Instagram embeds as HTML; default handling otherwise."""
        classes = el.get('class', [])
        if any(cls in SOCIAL_EMBED_CLASSES for cls in classes):
            # No trailing newline so an accompanying script can sit directly below
            return '\n\n' + self._raw_html(el)
        return super().convert_blockquote(el, text, parent_tags=parent_tags)

    def convert_p(self, el, text, parent_tags=None, **kwargs):
        if _is_codepen(el):
            return '\n\n' + self._raw_html(el) + '\n\n'
        return super().convert_p(el, text, parent_tags=parent_tags)

    def convert_div(self, el, text, parent_tags=None, **kwargs):
        if _is_codepen(el):
            return '\n\n' + self._raw_html(el) + '\n\n'
        return super().convert_div(el, text, parent_tags=parent_tags)

    def convert_script(self, el, text, parent_tags=None, **kwargs):
        """Keep embed scripts, tight below a preceding element."""
        before = '\n' if isinstance(_previous_significant_sibling(el), Tag) else '\n\n'
        return before + self._raw_html(el) + '\n\n'

    def convert_iframe(self, el, text, parent_tags=None, **kwargs):
        return '\n\n' + self._raw_html(el) + '\n\n'

    convert_video = convert_iframe
    convert_audio = convert_iframe

    def convert_figure(self, el, text, parent_tags=None, **kwargs):
        """Render gallery placeholders as gallery shortcodes."""
        if PLACEHOLDER_CLASS not in el.get('class', []):
            return '\n\n' + text.strip('\n') + '\n\n' if text.strip() else ''

        caption = _escape_shortcode(el.get('data-caption', ''))
        images = []
        for img in el.find_all('img'):
            entry = img.get('src', '')
            image_caption = img.get('alt', '')
            if image_caption:
                entry += "'" + _escape_shortcode(image_caption)
            images.append(entry)

        return f'\n\n{{{{< gallery caption="{caption}" images="{"|".join(images)}" >}}}}\n\n'

    def convert_figcaption(self, el, text, parent_tags=None, **kwargs):
        return '\n\n' + text.strip() + '\n\n' if text.strip() else ''


def _is_codepen(el) -> bool:
    return 'codepen' in el.get('class', []) and el.has_attr('data-slug-hash')


def _previous_significant_sibling(el):
    """Return the previous sibling, skipping whitespace-only text."""
    sibling = el.previous_sibling
    while isinstance(sibling, NavigableString) and not sibling.strip():
        sibling = sibling.previous_sibling
    return sibling


def _escape_shortcode(value: str) -> str:
    """Entity-encode a caption so it is safe inside a quoted shortcode attribute."""
    escaped = html.escape(value, quote=True)
    escaped = escaped.encode('ascii', 'xmlcharrefreplace').decode('ascii')
    return escaped.replace('|', '&#124;')


__all__ = ['MarkdownConverter']
