"""
Export orchestrator for coordinating the complete pipeline.

This module sequences the run: Read → Extract → Markdown batch → Comment
batch → Image batch → Report. The three batches run strictly one after
another; items inside a batch run concurrently.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from config_loader import get_nested
from exporters import CommentEncryptor, CommentExporter, ImageManager, MarkdownExporter, PathPlanner
from extractors import ExportReader, PostExtractor
from logger import log_section
from models import BatchReport, Post
from orchestrator.acquisition_pipeline import AcquisitionPipeline
from orchestrator.migration_report import MigrationReport


class MigrationOrchestrator:
    """Central coordinator sequencing all export phases."""

    def __init__(self, config: Dict[str, Any], logger: Optional[logging.Logger] = None):
        """
        Initialize orchestrator.

        Args:
            config: Validated configuration dictionary
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.orchestrator')
        self.report_generator = MigrationReport(self.logger)
        self.extractor: Optional[PostExtractor] = None
        self.planner: Optional[PathPlanner] = None
        self.image_stats: Dict[str, int] = {}

    def run(self) -> Dict[str, Any]:
        """
        Run the full export.

        Returns:
            Report dictionary

        Raises:
            ExportParseError: If the export cannot be read
            MalformedRecordError: If a record cannot be extracted
        """
        start_time = time.time()

        log_section("Parsing")
        posts = self.extract_posts()

        batches = asyncio.run(self.write_posts(posts))

        duration = time.time() - start_time
        report = self.report_generator.generate_report(
            posts_found=len(posts),
            batches=batches,
            duration=duration,
            image_mismatches=len(self.extractor.context.mismatches),
            image_stats=self.image_stats,
        )
        self.logger.info(f"Export complete in {duration:.2f}s")
        return report

    def extract_posts(self) -> List[Post]:
        """Read the export file and extract posts."""
        tree = ExportReader(self.logger).read(get_nested(self.config, 'input'))
        self.extractor = PostExtractor(self.config)
        posts = self.extractor.extract(tree)
        self.planner = PathPlanner(self.config, include_type_segment=len(self.extractor.post_types) > 1)
        return posts

    async def write_posts(self, posts: List[Post]) -> List[BatchReport]:
        """Run the Markdown, comment and image batches in sequence."""
        regenerate = get_nested(self.config, 'markdown.regenerate', False)
        markdown_delay = get_nested(self.config, 'delays.markdown_file_write', 25)
        image_delay = get_nested(self.config, 'delays.image_file_request', 500)

        batches = []

        log_section("Writing posts")
        markdown_exporter = MarkdownExporter(self.config, self.planner)
        pipeline = AcquisitionPipeline('posts', markdown_delay, regenerate)
        batches.append(await pipeline.execute(markdown_exporter.candidates(posts), markdown_exporter.load))

        log_section("Writing comments")
        comment_exporter = self._comment_exporter()
        pipeline = AcquisitionPipeline('comments', markdown_delay, regenerate)
        batches.append(await pipeline.execute(comment_exporter.candidates(posts), comment_exporter.load))

        log_section("Saving images")
        async with ImageManager(self.config, self.planner) as image_manager:
            pipeline = AcquisitionPipeline('images', image_delay, regenerate=False)
            batches.append(await pipeline.execute(image_manager.candidates(posts), image_manager.load))
            self.image_stats = image_manager.get_stats()

        return batches

    def _comment_exporter(self) -> CommentExporter:
        keys_to_encrypt = get_nested(self.config, 'comments.keys_to_encrypt', []) or []
        encryptor = None
        if keys_to_encrypt:
            encryptor = CommentEncryptor.from_file(get_nested(self.config, 'comments.public_key'))
        return CommentExporter(self.planner, keys_to_encrypt, encryptor)
