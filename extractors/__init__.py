"""Extractors package: reads a WordPress export into Post records."""

from .dates import DateFormatter
from .export_reader import ExportParseError, ExportReader
from .image_collector import ImageCollector
from .post_extractor import EXCLUDED_POST_TYPES, PostExtractor, extract_posts

__all__ = [
    'DateFormatter',
    'ExportParseError',
    'ExportReader',
    'ImageCollector',
    'PostExtractor',
    'extract_posts',
    'EXCLUDED_POST_TYPES',
]
