"""Converters package for WordPress post HTML to Markdown conversion."""

import logging

from .conversion_context import ConversionContext
from .figure_extractor import FigureExtractor
from .html_cleaner import HtmlCleaner
from .markdown_converter import MarkdownConverter

logger = logging.getLogger('wordpress_markdown_exporter.converters')


def convert_post(raw_html, config=None, post_id=None, context=None, logger=None):
    """
    Convenience function to convert a single post body from HTML to Markdown.

    This orchestrates the full conversion pipeline:
    1. HTML cleaning (comment removal, paragraph wrapping)
    2. Figure and gallery extraction into gallery placeholders
    3. Image source localization
    4. Image count consistency check
    5. Markdown generation using markdownify
    6. Post-processing (blank line collapsing, list marker spacing)

    Args:
        raw_html: Post body HTML
        config: Optional configuration dictionary for converter behavior
        post_id: Optional post id for bookkeeping and error messages
        context: Optional ConversionContext shared across posts
        logger: Optional logger instance (uses module logger if not provided)

    Returns:
        Tuple of (markdown, context)

    Example:
        >>> from converters import convert_post
        >>> markdown, _ = convert_post('<p>Hello <em>world</em></p>')
        >>> print(markdown)
        Hello *world*
    """
    if logger is None:
        logger = logging.getLogger('wordpress_markdown_exporter.converters')

    converter = MarkdownConverter(logger=logger, config=config)
    return converter.convert_post(raw_html, context, post_id)


__all__ = [
    'convert_post',
    'ConversionContext',
    'MarkdownConverter',
    'HtmlCleaner',
    'FigureExtractor'
]
