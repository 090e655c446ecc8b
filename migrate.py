#!/usr/bin/env python3
"""
WordPress Export to Markdown - Main CLI Entry Point

This script provides the command-line interface for converting a WordPress
export file into Markdown posts, YAML comment files and local images.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import yaml

# Add project root to Python path for flat imports
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

from config_loader import ConfigLoader
from extractors import ExportParseError
from logger import log_config, log_section, setup_logging
from models import MalformedRecordError
from orchestrator import MigrationOrchestrator

# Version
__version__ = "1.0.0"

DEFAULT_CONFIG_PATH = 'config.yaml'


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Convert a WordPress export file to Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert using a configuration file
  python migrate.py --config config.yaml

  # Convert a specific export into a specific folder
  python migrate.py --input export.xml --output site/content

  # Year and month folders, flat files
  python migrate.py --year-folders --month-folders --no-post-folders

  # Copy images from a local uploads folder instead of downloading
  python migrate.py --images-from-folder ./wp-content/uploads

  # Only a few posts, verbose logging
  python migrate.py --only-posts 12,57 -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f'Path to configuration YAML file (default: {DEFAULT_CONFIG_PATH})'
    )

    parser.add_argument(
        '--input',
        type=str,
        help='Path to the WordPress export file'
    )

    parser.add_argument(
        '--output',
        type=str,
        help='Directory for Markdown files'
    )

    parser.add_argument(
        '--output-comments',
        type=str,
        help='Directory for comment files'
    )

    for flag, help_text in (
        ('post-folders', 'Write each post as <slug>/index.md instead of <slug>.md'),
        ('prefix-date', 'Prefix post folders/files with the publication date'),
        ('year-folders', 'Organize posts into year folders'),
        ('month-folders', 'Organize posts into month folders'),
        ('include-other-types', 'Include pages and custom post types'),
        ('save-attached-images', 'Save images attached to posts'),
        ('save-scraped-images', 'Save images referenced in post bodies'),
        ('regenerate-markdown', 'Rewrite Markdown and comment files that already exist'),
    ):
        parser.add_argument(
            f'--{flag}',
            action=argparse.BooleanOptionalAction,
            default=None,
            help=help_text
        )

    parser.add_argument(
        '--frontmatter-folders',
        choices=['title', 'category', 'tag'],
        help='Add a folder named after this frontmatter field'
    )

    parser.add_argument(
        '--images-from-folder',
        type=str,
        help='Copy images from this local uploads folder instead of downloading them'
    )

    parser.add_argument(
        '--only-posts',
        type=str,
        help='Comma-separated post ids to convert (e.g., 12,57)'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '--report-json',
        type=str,
        help='Write the run report as JSON to this file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def load_configuration(args: argparse.Namespace) -> dict:
    """
    Load, merge and validate configuration.

    A missing config file is only an error when --config was given explicitly.

    Raises:
        FileNotFoundError: If an explicit config file does not exist
        ValueError: If validation fails
    """
    if os.path.exists(args.config) or args.config != DEFAULT_CONFIG_PATH:
        config = ConfigLoader.load(args.config)
    else:
        config = ConfigLoader.with_defaults({})

    config = ConfigLoader.merge_with_args(config, args)
    ConfigLoader.validate(config)
    return config


def run_export(config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    """Run the export and print the report. Returns the process exit code."""
    try:
        orchestrator = MigrationOrchestrator(config)
        report = orchestrator.run()
    except ExportParseError as e:
        logger.error(f"Could not read export: {e}")
        return 1
    except MalformedRecordError as e:
        logger.error(f"Malformed record, aborting: {e}")
        return 1

    print(orchestrator.report_generator.format_console_report(report))

    if args.report_json:
        orchestrator.report_generator.export_json_report(report, args.report_json)

    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        logger = setup_logging(verbosity=args.verbose)

        config = load_configuration(args)

        # Reconfigure logging with config file settings
        logger = setup_logging(
            verbosity=args.verbose,
            log_file=config['logging'].get('file'),
            level=config['logging'].get('level')
        )

        log_section("WordPress Export to Markdown")
        logger.info(f"Version: {__version__}")
        log_config(config)

        return run_export(config, args, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
