"""Date parsing and formatting for posts and comments."""

import logging
from datetime import datetime, tzinfo
from typing import Any, Dict, Optional, Tuple

from dateutil import parser as date_parser
from dateutil import tz

from config_loader import get_nested

logger = logging.getLogger('wordpress_markdown_exporter.extractors.dates')

COMMENT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class DateFormatter:
    """
    Applies one zone policy and one output policy to every date of a run.

    Zone: UTC by default, the machine's local zone when ``dates.local`` is set.
    Output: ``dates.custom_format`` (strftime) if given, else ISO-8601 with time
    when ``dates.include_time`` is set, else the ISO date alone.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.zone: tzinfo = tz.tzlocal() if get_nested(config, 'dates.local', False) else tz.UTC
        self.custom_format = get_nested(config, 'dates.custom_format', '') or ''
        self.include_time = bool(get_nested(config, 'dates.include_time', False))

    def parse_post_date(self, pub_date: str, post_date_gmt: str = '') -> datetime:
        """
        Parse a post's publication date.

        Args:
            pub_date: RFC 2822 ``pubDate`` value
            post_date_gmt: ``wp:post_date_gmt`` value used when ``pubDate`` is unusable

        Returns:
            Timezone-aware datetime in the configured zone

        Raises:
            ValueError: If neither value can be parsed
        """
        try:
            parsed = date_parser.parse(pub_date)
        except (ValueError, OverflowError, TypeError):
            parsed = None

        if parsed is None or parsed.year < 1:
            if not post_date_gmt or post_date_gmt.startswith('0000'):
                raise ValueError(f"Unparseable post date '{pub_date}'")
            parsed = datetime.strptime(post_date_gmt, COMMENT_DATE_FORMAT).replace(tzinfo=tz.UTC)

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=tz.UTC)
        return parsed.astimezone(self.zone)

    def parse_comment_date(self, comment_date: str) -> datetime:
        """Parse ``wp:comment_date`` as wall-clock time in the configured zone."""
        return datetime.strptime(comment_date, COMMENT_DATE_FORMAT).replace(tzinfo=self.zone)

    def format(self, value: datetime) -> str:
        if self.custom_format:
            return value.strftime(self.custom_format)
        if self.include_time:
            return value.isoformat()
        return value.date().isoformat()

    def post_date(self, pub_date: str, post_date_gmt: str = '') -> Tuple[str, datetime]:
        """Return (formatted, parsed) for a post date."""
        parsed = self.parse_post_date(pub_date, post_date_gmt)
        return self.format(parsed), parsed

    def comment_date(self, comment_date: str) -> Tuple[str, datetime]:
        """Return (formatted, parsed) for a comment date."""
        parsed = self.parse_comment_date(comment_date)
        return self.format(parsed), parsed
