"""End-to-end tests for the export run and the command line."""

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import yaml

import migrate
from config_loader import ConfigLoader
from orchestrator import MigrationOrchestrator, MigrationReport
from models import BatchReport, ItemStatus

FIXTURE = Path(__file__).parent / 'fixtures' / 'export.xml'


class ExportTestCase(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.output = self.root / 'out'
        self.comments = self.root / 'comments'
        self.uploads = self.root / 'uploads'

        (self.uploads / '2020' / '05').mkdir(parents=True)
        (self.uploads / '2020' / '05' / 'sunset.jpg').write_bytes(b'sunset')
        (self.uploads / '2020' / '05' / 'cover.png').write_bytes(b'cover')

    def tearDown(self):
        self.temp_dir.cleanup()

    def make_config(self, **overrides):
        config = ConfigLoader.with_defaults({
            'input': str(FIXTURE),
            'output': {'directory': str(self.output), 'comments_directory': str(self.comments)},
            'images': {'from_folder': str(self.uploads)},
            'delays': {'markdown_file_write': 0, 'image_file_request': 0},
        })
        for section, values in overrides.items():
            config[section].update(values)
        ConfigLoader.validate(config)
        return config


class TestMigrationOrchestrator(ExportTestCase):
    def test_full_run(self):
        report = MigrationOrchestrator(self.make_config()).run()

        self.assertEqual(report['summary']['posts'], 1)
        self.assertEqual(report['summary']['written'], 4)
        self.assertEqual(report['summary']['failed'], 0)
        self.assertEqual(report['summary']['image_local_copies'], 2)
        self.assertEqual(report['summary']['image_downloaded_bytes'], 0)
        self.assertEqual([batch['name'] for batch in report['batches']], ['posts', 'comments', 'images'])

        post_dir = self.output / 'hello-world'
        markdown = (post_dir / 'index.md').read_text(encoding='utf-8')
        self.assertTrue(markdown.startswith('---\ntitle: "Hello \\"World\\""\n'))
        self.assertIn('featured_image: "images/cover.png"\n', markdown)
        self.assertIn('  - "café"\n', markdown)
        self.assertIn("images=\"images/sunset.jpg'Sunset\"", markdown)

        self.assertEqual((post_dir / 'images' / 'sunset.jpg').read_bytes(), b'sunset')
        self.assertEqual((post_dir / 'images' / 'cover.png').read_bytes(), b'cover')

        comment_file = self.comments / 'hello-world' / 'comment-1588669200000.yml'
        comment = yaml.safe_load(comment_file.read_text(encoding='utf-8'))
        self.assertEqual(comment['name'], 'Alice')
        self.assertEqual(comment['message'], 'Nice post!')

    def test_second_run_skips_existing_files(self):
        MigrationOrchestrator(self.make_config()).run()
        report = MigrationOrchestrator(self.make_config()).run()

        self.assertEqual(report['summary']['written'], 0)
        self.assertEqual(report['summary']['skipped'], 4)

    def test_regenerate_rewrites_markdown_but_not_images(self):
        MigrationOrchestrator(self.make_config()).run()
        report = MigrationOrchestrator(self.make_config(markdown={'regenerate': True})).run()

        batches = {batch['name']: batch for batch in report['batches']}
        self.assertEqual(batches['posts']['regenerated'], 1)
        self.assertEqual(batches['comments']['regenerated'], 1)
        self.assertEqual(batches['images']['skipped'], 2)
        self.assertEqual(batches['images']['succeeded'], 0)

    def test_missing_local_image_fails_only_that_item(self):
        (self.uploads / '2020' / '05' / 'cover.png').unlink()
        report = MigrationOrchestrator(self.make_config()).run()

        images = report['batches'][2]
        self.assertEqual(images['succeeded'], 1)
        self.assertEqual(images['failed'], 1)
        self.assertEqual(images['failures'][0]['label'], 'cover.png')
        self.assertTrue((self.output / 'hello-world' / 'index.md').exists())

    def test_other_types_get_type_folders(self):
        (self.uploads / '2020' / '06').mkdir()
        (self.uploads / '2020' / '06' / 'team.jpg').write_bytes(b'team')

        MigrationOrchestrator(self.make_config(posts={'include_other_types': True})).run()

        self.assertTrue((self.output / 'post' / 'hello-world' / 'index.md').exists())
        self.assertTrue((self.output / 'page' / 'about' / 'index.md').exists())
        self.assertTrue((self.output / 'page' / 'about' / 'images' / 'team.jpg').exists())


class TestMigrationReport(unittest.TestCase):
    def test_console_report(self):
        batch = BatchReport(name='images', skipped=2)
        batch.record('a.jpg', ItemStatus.WRITTEN)
        batch.record('b.jpg', ItemStatus.FAILED, '404 Not Found')

        generator = MigrationReport()
        report = generator.generate_report(posts_found=3, batches=[batch], duration=75, image_mismatches=1)
        text = generator.format_console_report(report)

        self.assertEqual(report['summary']['duration_formatted'], '1m 15s')
        self.assertIn('images', text)
        self.assertIn('Image count mismatches: 1', text)
        self.assertIn('[images] b.jpg: 404 Not Found', text)

    def test_image_stats_in_console_report(self):
        generator = MigrationReport()
        report = generator.generate_report(
            posts_found=1, batches=[BatchReport(name='images')], duration=2,
            image_stats={'downloaded_bytes': 2048, 'local_copies': 3}
        )
        text = generator.format_console_report(report)

        self.assertEqual(report['summary']['image_downloaded_bytes'], 2048)
        self.assertIn('Downloaded:  2048 bytes', text)
        self.assertIn('Copied:      3 local images', text)

    def test_json_report(self):
        generator = MigrationReport()
        report = generator.generate_report(posts_found=0, batches=[BatchReport(name='posts')], duration=1.5)

        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / 'report.json'
            generator.export_json_report(report, str(path))
            saved = json.loads(path.read_text(encoding='utf-8'))

        self.assertEqual(saved['batches'][0]['name'], 'posts')
        self.assertEqual(saved['summary']['duration_formatted'], '1.5s')


class TestCommandLine(ExportTestCase):
    def write_config(self, **overrides):
        config = {
            'input': str(FIXTURE),
            'output': {'directory': str(self.output), 'comments_directory': str(self.comments)},
            'images': {'from_folder': str(self.uploads)},
            'delays': {'markdown_file_write': 0, 'image_file_request': 0},
        }
        config.update(overrides)
        path = self.root / 'config.yaml'
        path.write_text(yaml.safe_dump(config), encoding='utf-8')
        return str(path)

    def run_main(self, *argv):
        with mock.patch('sys.argv', ['migrate.py', *argv]):
            return migrate.main()

    def test_success(self):
        exit_code = self.run_main('--config', self.write_config(), '--no-post-folders')

        self.assertEqual(exit_code, 0)
        self.assertTrue((self.output / 'hello-world.md').exists())
        self.assertTrue((self.output / 'images' / 'sunset.jpg').exists())

    def test_report_json(self):
        report_path = self.root / 'report.json'
        exit_code = self.run_main('--config', self.write_config(), '--report-json', str(report_path))

        self.assertEqual(exit_code, 0)
        self.assertEqual(json.loads(report_path.read_text(encoding='utf-8'))['summary']['written'], 4)

    def test_missing_config_file(self):
        self.assertEqual(self.run_main('--config', str(self.root / 'missing.yaml')), 2)

    def test_invalid_configuration(self):
        config_path = self.write_config(output={'directory': str(self.output), 'frontmatter_exclude': ['nope']})
        self.assertEqual(self.run_main('--config', config_path), 2)

    def test_unreadable_export(self):
        broken = self.root / 'broken.xml'
        broken.write_text('<rss><channel>', encoding='utf-8')

        self.assertEqual(self.run_main('--config', self.write_config(), '--input', str(broken)), 1)

    def test_malformed_record(self):
        export = FIXTURE.read_text(encoding='utf-8').replace(
            '<link>https://example.com/2020/05/hello-world/</link>', '<link>?p=10</link>'
        )
        broken = self.root / 'export.xml'
        broken.write_text(export, encoding='utf-8')

        self.assertEqual(self.run_main('--config', self.write_config(), '--input', str(broken)), 1)

    def test_default_config_file_is_optional(self):
        args = migrate.create_argument_parser().parse_args([
            '--input', str(FIXTURE), '--output', str(self.output),
        ])
        with mock.patch('migrate.os.path.exists', return_value=False):
            config = migrate.load_configuration(args)

        self.assertEqual(config['input'], str(FIXTURE))
        self.assertEqual(config['output']['directory'], str(self.output))
        self.assertTrue(config['output']['post_folders'])
