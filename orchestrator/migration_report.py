"""
Run report generator for aggregating batch statistics and formatting reports.

This module builds the end-of-run summary from the extraction counts and
the three batch reports, formatted for console display or JSON export.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from models import BatchReport


class MigrationReport:
    """Generates the run report: skipped/regenerated/written/failed per batch."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize report generator.

        Args:
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.orchestrator.report')

    def generate_report(
        self,
        posts_found: int,
        batches: List[BatchReport],
        duration: float,
        image_mismatches: int = 0,
        image_stats: Optional[Dict[str, int]] = None
    ) -> Dict[str, Any]:
        """
        Generate run report.

        Args:
            posts_found: Number of posts extracted
            batches: Reports of the batches that ran, in order
            duration: Total run duration in seconds
            image_mismatches: Posts whose image count check failed
            image_stats: Byte and copy counters from the image batch

        Returns:
            Report dictionary
        """
        report = {
            'summary': {
                'posts': posts_found,
                'written': sum(batch.succeeded for batch in batches),
                'failed': sum(batch.failed for batch in batches),
                'skipped': sum(batch.skipped for batch in batches),
                'regenerated': sum(batch.regenerated for batch in batches),
                'image_mismatches': image_mismatches,
                'image_downloaded_bytes': (image_stats or {}).get('downloaded_bytes', 0),
                'image_local_copies': (image_stats or {}).get('local_copies', 0),
                'duration_seconds': duration,
                'duration_formatted': self._format_duration(duration),
            },
            'batches': [batch.to_dict() for batch in batches],
            'timestamp': datetime.now().isoformat()
        }

        self.logger.debug(
            f"Report generated: {report['summary']['written']} written, "
            f"{report['summary']['failed']} failed"
        )
        return report

    def format_console_report(self, report: Dict[str, Any]) -> str:
        """
        Format report for console display.

        Args:
            report: Report dictionary

        Returns:
            Formatted console string
        """
        sections = []

        sections.append("=" * 60)
        sections.append("EXPORT REPORT")
        sections.append("=" * 60)

        summary = report.get('summary', {})
        sections.append(f"  Posts:       {summary.get('posts', 0)}")
        sections.append(f"  Duration:    {summary.get('duration_formatted', '0s')}")
        if summary.get('image_mismatches'):
            sections.append(f"  Image count mismatches: {summary['image_mismatches']}")
        if summary.get('image_downloaded_bytes'):
            sections.append(f"  Downloaded:  {summary['image_downloaded_bytes']} bytes")
        if summary.get('image_local_copies'):
            sections.append(f"  Copied:      {summary['image_local_copies']} local images")
        sections.append("")

        sections.append(f"  {'Batch':<12}{'Written':>9}{'Failed':>9}{'Skipped':>9}{'Rewritten':>11}")
        sections.append("-" * 60)
        for batch in report.get('batches', []):
            sections.append(
                f"  {batch['name']:<12}{batch['succeeded']:>9}{batch['failed']:>9}"
                f"{batch['skipped']:>9}{batch['regenerated']:>11}"
            )

        failures = [
            (batch['name'], failure) for batch in report.get('batches', [])
            for failure in batch.get('failures', [])
        ]
        if failures:
            sections.append("")
            sections.append("Failures:")
            for batch_name, failure in failures:
                sections.append(f"  [{batch_name}] {failure['label']}: {failure['error']}")

        sections.append("=" * 60)

        return "\n".join(sections)

    def export_json_report(self, report: Dict[str, Any], filepath: str) -> None:
        """
        Export report to JSON file.

        Args:
            report: Report dictionary
            filepath: Output file path
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)

            self.logger.info(f"JSON report exported to {filepath}")

        except OSError as e:
            self.logger.error(f"Failed to export JSON report: {str(e)}")

    def _format_duration(self, seconds: float) -> str:
        """Format duration in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f}s"

        minutes = int(seconds // 60)
        seconds = int(seconds % 60)
        return f"{minutes}m {seconds}s"
