"""Tests for reading WordPress exports into a decoded tree."""

import unittest
from pathlib import Path

from extractors import ExportParseError, ExportReader
from extractors.export_reader import first_value

FIXTURE = Path(__file__).parent / 'fixtures' / 'export.xml'


class TestExportReader(unittest.TestCase):
    def setUp(self):
        self.reader = ExportReader()

    def test_reads_channel_items(self):
        tree = self.reader.read(FIXTURE)
        items = tree['rss']['channel'][0]['item']

        self.assertEqual(len(items), 7)
        self.assertEqual(first_value(items[0], 'title'), 'Hello "World"')
        self.assertEqual(first_value(items[0], 'post_id'), '10')
        self.assertEqual(first_value(items[0], 'post_type'), 'post')

    def test_prefixes_are_stripped_and_cdata_kept(self):
        tree = self.reader.read(FIXTURE)
        item = tree['rss']['channel'][0]['item'][0]

        content = first_value(item, 'encoded')
        self.assertTrue(content.startswith('<!-- wp:paragraph -->'))
        self.assertIn('sunset-1024x768.jpg', content)

    def test_attributes_and_text(self):
        tree = self.reader.read(FIXTURE)
        item = tree['rss']['channel'][0]['item'][0]

        category = item['category'][0]
        self.assertEqual(category['$'], {'domain': 'category', 'nicename': 'news'})
        self.assertEqual(category['_'], 'News')
        self.assertEqual(first_value(item, 'category'), 'News')

    def test_nested_records(self):
        tree = self.reader.read(FIXTURE)
        item = tree['rss']['channel'][0]['item'][0]

        self.assertEqual(len(item['comment']), 2)
        self.assertEqual(first_value(item['comment'][0], 'comment_author'), 'Alice')
        self.assertEqual(first_value(item['postmeta'][1], 'meta_key'), '_thumbnail_id')

    def test_missing_value_default(self):
        self.assertEqual(first_value({}, 'title'), '')
        self.assertEqual(first_value({'title': []}, 'title', 'none'), 'none')

    def test_missing_file(self):
        with self.assertRaises(ExportParseError):
            self.reader.read(FIXTURE.parent / 'missing.xml')

    def test_malformed_xml(self):
        with self.assertRaises(ExportParseError):
            self.reader.read_bytes(b'<rss><channel><item></channel></rss>')

    def test_not_an_rss_document(self):
        with self.assertRaises(ExportParseError):
            self.reader.read_bytes(b'<feed><entry/></feed>')
