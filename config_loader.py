"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict

import yaml

from models import FRONTMATTER_FOLDER_FIELDS

COMMENT_FIELDS = ('_id', '_parent', 'message', 'name', 'email', 'date')

FRONTMATTER_KEYS = ('title', 'date', 'old_url', 'categories', 'tags', 'featured_image')

DEFAULT_CONFIG: Dict[str, Any] = {
    'input': 'export.xml',
    'output': {
        'directory': 'output',
        'comments_directory': 'output-comments',
        'post_folders': True,
        'prefix_date': False,
        'year_folders': False,
        'month_folders': False,
        'frontmatter_folders': None,
        'frontmatter_exclude': [],
    },
    'posts': {
        'include_other_types': False,
        'only_posts': [],
    },
    'images': {
        'save_attached': True,
        'save_scraped': True,
        'from_folder': '',
        'request_timeout': 30,
    },
    'markdown': {
        'regenerate': False,
    },
    'comments': {
        'keys_to_encrypt': [],
        'public_key': None,
    },
    'dates': {
        'local': False,
        'custom_format': '',
        'include_time': False,
    },
    'filters': {
        'categories': ['uncategorized'],
    },
    'delays': {
        'markdown_file_write': 25,
        'image_file_request': 500,
    },
    'logging': {
        'level': None,
        'file': None,
    },
}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Values missing from the file fall back to DEFAULT_CONFIG.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        config_data = cls._substitute_env_vars_recursive(config_data)

        return cls.with_defaults(config_data)

    @classmethod
    def with_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """Return a deep copy of ``config`` layered over DEFAULT_CONFIG."""
        return _deep_merge(DEFAULT_CONFIG, config)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'input')
        cls._validate_required_field(config, 'output.directory')
        cls._validate_required_field(config, 'output.comments_directory')

        for flag in ('output.post_folders', 'output.prefix_date', 'output.year_folders',
                     'output.month_folders', 'posts.include_other_types', 'images.save_attached',
                     'images.save_scraped', 'markdown.regenerate', 'dates.local', 'dates.include_time'):
            value = get_nested(config, flag)
            if value is not None and not isinstance(value, bool):
                raise ValueError(f"{flag} must be a boolean")

        # Folder segment names are looked up in a fixed accessor table
        folder_field = get_nested(config, 'output.frontmatter_folders')
        if folder_field and folder_field not in FRONTMATTER_FOLDER_FIELDS:
            raise ValueError(
                f"output.frontmatter_folders must be one of: {sorted(FRONTMATTER_FOLDER_FIELDS)}"
            )

        exclude = get_nested(config, 'output.frontmatter_exclude', [])
        if not isinstance(exclude, list):
            raise ValueError("output.frontmatter_exclude must be a list")
        unknown_keys = [key for key in exclude if key not in FRONTMATTER_KEYS]
        if unknown_keys:
            raise ValueError(
                f"output.frontmatter_exclude contains unknown keys {unknown_keys}; "
                f"allowed: {list(FRONTMATTER_KEYS)}"
            )

        only_posts = get_nested(config, 'posts.only_posts', [])
        if not isinstance(only_posts, list):
            raise ValueError("posts.only_posts must be a list of post ids")

        custom_format = get_nested(config, 'dates.custom_format', '')
        if custom_format is not None and not isinstance(custom_format, str):
            raise ValueError("dates.custom_format must be a strftime pattern string")

        for delay_key in ('delays.markdown_file_write', 'delays.image_file_request'):
            delay = get_nested(config, delay_key, 0)
            if not isinstance(delay, (int, float)) or isinstance(delay, bool) or delay < 0:
                raise ValueError(f"{delay_key} must be a non-negative number of milliseconds")

        timeout = get_nested(config, 'images.request_timeout', 30)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError("images.request_timeout must be a positive number")

        keys_to_encrypt = get_nested(config, 'comments.keys_to_encrypt', [])
        if not isinstance(keys_to_encrypt, list):
            raise ValueError("comments.keys_to_encrypt must be a list")
        unknown_fields = [key for key in keys_to_encrypt if key not in COMMENT_FIELDS]
        if unknown_fields:
            raise ValueError(
                f"comments.keys_to_encrypt contains unknown fields {unknown_fields}; "
                f"allowed: {list(COMMENT_FIELDS)}"
            )
        if keys_to_encrypt:
            cls._validate_required_field(config, 'comments.public_key')

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for section in ('output', 'posts', 'images', 'markdown', 'logging'):
            merged.setdefault(section, {})

        if getattr(args, 'input', None):
            merged['input'] = args.input

        if getattr(args, 'output', None):
            merged['output']['directory'] = args.output

        if getattr(args, 'output_comments', None):
            merged['output']['comments_directory'] = args.output_comments

        # Tri-state flags: None means "not given on the command line"
        flag_targets = {
            'post_folders': ('output', 'post_folders'),
            'prefix_date': ('output', 'prefix_date'),
            'year_folders': ('output', 'year_folders'),
            'month_folders': ('output', 'month_folders'),
            'include_other_types': ('posts', 'include_other_types'),
            'save_attached_images': ('images', 'save_attached'),
            'save_scraped_images': ('images', 'save_scraped'),
            'regenerate_markdown': ('markdown', 'regenerate'),
        }
        for arg_name, (section, key) in flag_targets.items():
            value = getattr(args, arg_name, None)
            if value is not None:
                merged[section][key] = value

        if getattr(args, 'frontmatter_folders', None):
            merged['output']['frontmatter_folders'] = args.frontmatter_folders

        if getattr(args, 'images_from_folder', None):
            merged['images']['from_folder'] = args.images_from_folder

        if getattr(args, 'only_posts', None):
            merged['posts']['only_posts'] = [
                post_id.strip() for post_id in args.only_posts.split(',') if post_id.strip()
            ]

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "output.directory")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'get_nested', 'DEFAULT_CONFIG', 'COMMENT_FIELDS', 'FRONTMATTER_KEYS']
