"""Tests for configuration loading, validation and CLI merging."""

import argparse
import os
import tempfile
import unittest

from config_loader import ConfigLoader, get_nested


def make_args(**overrides):
    defaults = {
        'input': None,
        'output': None,
        'output_comments': None,
        'post_folders': None,
        'prefix_date': None,
        'year_folders': None,
        'month_folders': None,
        'include_other_types': None,
        'save_attached_images': None,
        'save_scraped_images': None,
        'regenerate_markdown': None,
        'frontmatter_folders': None,
        'images_from_folder': None,
        'only_posts': None,
        'log_file': None,
    }
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


class TestConfigLoading(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, 'config.yaml')

    def tearDown(self):
        self.temp_dir.cleanup()

    def write_config(self, text):
        with open(self.config_path, 'w', encoding='utf-8') as f:
            f.write(text)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            ConfigLoader.load(os.path.join(self.temp_dir.name, 'missing.yaml'))

    def test_partial_file_is_layered_over_defaults(self):
        self.write_config("input: site.xml\noutput:\n  year_folders: true\n")
        config = ConfigLoader.load(self.config_path)

        self.assertEqual(config['input'], 'site.xml')
        self.assertTrue(config['output']['year_folders'])
        self.assertTrue(config['output']['post_folders'])
        self.assertEqual(config['delays']['image_file_request'], 500)
        self.assertEqual(config['filters']['categories'], ['uncategorized'])

    def test_environment_substitution(self):
        os.environ['WP_EXPORT_TEST_INPUT'] = 'from-env.xml'
        try:
            self.write_config("input: ${WP_EXPORT_TEST_INPUT}\n")
            config = ConfigLoader.load(self.config_path)
        finally:
            del os.environ['WP_EXPORT_TEST_INPUT']

        self.assertEqual(config['input'], 'from-env.xml')

    def test_non_mapping_file(self):
        self.write_config("- just\n- a list\n")
        with self.assertRaises(ValueError):
            ConfigLoader.load(self.config_path)


class TestConfigValidation(unittest.TestCase):
    def setUp(self):
        self.config = ConfigLoader.with_defaults({})

    def test_defaults_are_valid(self):
        ConfigLoader.validate(self.config)

    def test_unknown_frontmatter_folder_field(self):
        self.config['output']['frontmatter_folders'] = 'author'
        with self.assertRaises(ValueError):
            ConfigLoader.validate(self.config)

    def test_unknown_excluded_frontmatter_key(self):
        self.config['output']['frontmatter_exclude'] = ['title', 'summary']
        with self.assertRaisesRegex(ValueError, 'summary'):
            ConfigLoader.validate(self.config)

    def test_boolean_flags(self):
        self.config['output']['post_folders'] = 'yes'
        with self.assertRaises(ValueError):
            ConfigLoader.validate(self.config)

    def test_negative_delay(self):
        self.config['delays']['markdown_file_write'] = -1
        with self.assertRaises(ValueError):
            ConfigLoader.validate(self.config)

    def test_encrypted_keys_need_public_key(self):
        self.config['comments']['keys_to_encrypt'] = ['email']
        with self.assertRaisesRegex(ValueError, 'public_key'):
            ConfigLoader.validate(self.config)

        self.config['comments']['public_key'] = 'key.pem'
        ConfigLoader.validate(self.config)

    def test_unknown_encrypted_key(self):
        self.config['comments']['keys_to_encrypt'] = ['ip']
        self.config['comments']['public_key'] = 'key.pem'
        with self.assertRaises(ValueError):
            ConfigLoader.validate(self.config)


class TestMergeWithArgs(unittest.TestCase):
    def setUp(self):
        self.config = ConfigLoader.with_defaults({})

    def test_unset_flags_keep_config_values(self):
        self.config['output']['prefix_date'] = True
        merged = ConfigLoader.merge_with_args(self.config, make_args())

        self.assertTrue(merged['output']['prefix_date'])
        self.assertEqual(merged, self.config)

    def test_flags_override_config(self):
        merged = ConfigLoader.merge_with_args(self.config, make_args(
            input='other.xml',
            output='site',
            post_folders=False,
            regenerate_markdown=True,
            save_scraped_images=False,
            frontmatter_folders='category',
            only_posts='12, 57,',
        ))

        self.assertEqual(merged['input'], 'other.xml')
        self.assertEqual(merged['output']['directory'], 'site')
        self.assertFalse(merged['output']['post_folders'])
        self.assertTrue(merged['markdown']['regenerate'])
        self.assertFalse(merged['images']['save_scraped'])
        self.assertEqual(merged['output']['frontmatter_folders'], 'category')
        self.assertEqual(merged['posts']['only_posts'], ['12', '57'])

    def test_merge_does_not_mutate_input(self):
        ConfigLoader.merge_with_args(self.config, make_args(output='site'))
        self.assertEqual(self.config['output']['directory'], 'output')


class TestGetNested(unittest.TestCase):
    def test_lookup(self):
        config = {'a': {'b': {'c': 1}}}
        self.assertEqual(get_nested(config, 'a.b.c'), 1)
        self.assertEqual(get_nested(config, 'a.x', 'fallback'), 'fallback')
        self.assertIsNone(get_nested(config, 'a.b.c.d'))
