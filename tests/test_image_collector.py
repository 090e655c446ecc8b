"""Tests for image discovery and merging."""

import unittest

from extractors import ImageCollector
from models import UNATTACHED, Frontmatter, ImageRecord, Post, PostMeta

UPLOADS = 'https://example.com/wp-content/uploads/2021/03/'


def make_post(post_id, cover_image_id=None, content=''):
    return Post(
        meta=PostMeta(id=post_id, slug=f'post-{post_id}', type='post', cover_image_id=cover_image_id),
        frontmatter=Frontmatter(title='T', date='2021-03-01', old_url=f'https://example.com/?p={post_id}'),
        content=content,
    )


def make_item(**values):
    return {key: [value] for key, value in values.items()}


class TestCollect(unittest.TestCase):
    def setUp(self):
        self.collector = ImageCollector()

    def test_attached_images_only(self):
        items = [
            make_item(post_type='attachment', post_id='5', post_parent='1', attachment_url=UPLOADS + 'a.jpg'),
            make_item(post_type='attachment', post_id='6', post_parent='1', attachment_url=UPLOADS + 'doc.pdf'),
            make_item(post_type='post', post_id='1'),
        ]
        images = self.collector.collect_attached(items)
        self.assertEqual(images, [ImageRecord(id='5', post_id='1', url=UPLOADS + 'a.jpg')])

    def test_scraped_images_resolved_against_link(self):
        items = [
            make_item(
                post_type='post', post_id='1', link='https://example.com/2021/03/post/',
                encoded='<p><img class="x" src="/wp-content/uploads/2021/03/b.png" alt=""></p>'
                        '<img src="https://cdn.example.com/c.GIF">',
            ),
            make_item(post_type='page', post_id='2', link='https://example.com/page/',
                      encoded='<img src="d.jpg">'),
        ]
        images = self.collector.collect_scraped(items, ['post'])

        self.assertEqual(images, [
            ImageRecord(id=UNATTACHED, post_id='1', url=UPLOADS + 'b.png'),
            ImageRecord(id=UNATTACHED, post_id='1', url='https://cdn.example.com/c.GIF'),
        ])


class TestMerge(unittest.TestCase):
    def setUp(self):
        self.collector = ImageCollector()

    def test_attached_to_parent_post(self):
        posts = [make_post('1'), make_post('2')]
        self.collector.merge([ImageRecord(id='5', post_id='1', url=UPLOADS + 'a.jpg')], posts)

        self.assertEqual(posts[0].meta.image_urls, [UPLOADS + 'a.jpg'])
        self.assertEqual(posts[1].meta.image_urls, [])
        self.assertIsNone(posts[0].frontmatter.featured_image)

    def test_cover_image_of_another_post(self):
        posts = [make_post('1'), make_post('2', cover_image_id='5')]
        self.collector.merge([ImageRecord(id='5', post_id='1', url=UPLOADS + 'a%20b.jpg')], posts)

        self.assertEqual(posts[0].meta.image_urls, [UPLOADS + 'a%20b.jpg'])
        self.assertEqual(posts[1].meta.image_urls, [UPLOADS + 'a%20b.jpg'])
        self.assertEqual(posts[1].frontmatter.featured_image, 'images/a b.jpg')

    def test_scraped_image_never_a_cover(self):
        posts = [make_post('1'), make_post('2', cover_image_id=UNATTACHED)]
        self.collector.merge([ImageRecord(id=UNATTACHED, post_id='1', url=UPLOADS + 'a.jpg')], posts)

        self.assertEqual(posts[1].meta.image_urls, [])
        self.assertIsNone(posts[1].frontmatter.featured_image)

    def test_urls_deduplicated(self):
        posts = [make_post('1')]
        self.collector.merge([
            ImageRecord(id='5', post_id='1', url=UPLOADS + 'a.jpg'),
            ImageRecord(id=UNATTACHED, post_id='1', url=UPLOADS + 'a.jpg'),
        ], posts)
        self.assertEqual(posts[0].meta.image_urls, [UPLOADS + 'a.jpg'])


class TestCleanImages(unittest.TestCase):
    def setUp(self):
        self.collector = ImageCollector()

    def test_skipped_without_local_folder(self):
        post = make_post('1')
        post.meta.image_urls = [UPLOADS + 'a-300x200.jpg']

        with self.assertLogs('wordpress_markdown_exporter.extractors.imagecollector', level='WARNING'):
            rewritten = self.collector.clean_images([post], '')

        self.assertEqual(rewritten, 0)
        self.assertEqual(post.meta.image_urls, [UPLOADS + 'a-300x200.jpg'])

    def test_rewrites_urls_and_every_reference(self):
        post = make_post('1', content=(
            "{{< gallery caption=\"\" images=\"images/a-300x200.jpg\" >}}\n\n"
            "![x](images/a-300x200.jpg)"
        ))
        post.meta.image_urls = [UPLOADS + 'a-300x200.jpg', UPLOADS + 'a.jpg', UPLOADS + 'b-scaled.jpg']
        post.frontmatter.featured_image = 'images/b-scaled.jpg'

        rewritten = self.collector.clean_images([post], '/srv/uploads')

        self.assertEqual(rewritten, 2)
        self.assertEqual(post.meta.image_urls, [UPLOADS + 'a.jpg', UPLOADS + 'b.jpg'])
        self.assertNotIn('a-300x200.jpg', post.content)
        self.assertEqual(post.content.count('images/a.jpg'), 2)
        self.assertEqual(post.frontmatter.featured_image, 'images/b.jpg')
