"""URL and filename helpers shared by the extractor, converter and exporters."""

import re
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote, urljoin, urlparse


IMAGE_EXTENSION_PATTERN = re.compile(r'\.(?:gif|jpe?g|png)$', re.IGNORECASE)

# Inline <img> tags with a src pointing at an image file
SCRAPED_IMAGE_PATTERN = re.compile(
    r'<img[^>]*src="(.+?\.(?:gif|jpe?g|png))"[^>]*>',
    re.IGNORECASE
)

PERCENT_ENCODED_PATTERN = re.compile(r'%[\da-f]{2}', re.IGNORECASE)

URL_SAFE_CHARACTERS = ":/?#[]@!$&'()*+,;=~"


def is_image_url(url: Optional[str]) -> bool:
    """Check whether a URL or path ends in a supported image extension."""
    if not url:
        return False
    return bool(IMAGE_EXTENSION_PATTERN.search(urlparse(url).path or url))


def filename_from_url(url: str) -> str:
    """Return the URL-decoded last path segment of ``url``."""
    path = urlparse(url).path or url
    return unquote(path.rstrip('/').split('/')[-1])


def is_absolute_http_url(url: Optional[str]) -> bool:
    """Check that ``url`` has an http(s) scheme and a host."""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def resolve_url(src: str, base_url: str) -> str:
    """Resolve ``src`` against ``base_url``.

    Raises:
        ValueError: If ``base_url`` is not an absolute http(s) URL
    """
    if not is_absolute_http_url(base_url):
        raise ValueError(f"Cannot resolve '{src}' against malformed link '{base_url}'")
    return urljoin(base_url, src)


def encode_url(url: str) -> str:
    """Percent-encode ``url`` unless it already carries encoded characters."""
    if PERCENT_ENCODED_PATTERN.search(url):
        return url
    return quote(url, safe=URL_SAFE_CHARACTERS)


def url_to_local_path(url: str, folder: str) -> Path:
    """Map an uploads URL onto a local mirror of the uploads folder.

    ``https://example.com/wp-content/uploads/2020/05/a.jpg`` with folder
    ``./uploads`` becomes ``./uploads/2020/05/a.jpg`` (absolute).
    """
    segments = [unquote(segment) for segment in urlparse(url).path.split('/') if segment]
    tail = []
    for segment in reversed(segments):
        if segment == 'uploads':
            break
        tail.append(segment)
    return Path(folder).joinpath(*reversed(tail)).resolve()


# Upload-variant rewrites applied in order until the filename stops changing
FILENAME_RULES = (
    ('size_suffix', re.compile(r'-\d+x\d+(?=\.[^.]+$)')),
    ('scaled', re.compile(r'-scaled(?=\.[^.]+$)')),
)


def clean_filename(filename: str) -> str:
    """Strip WordPress size and ``-scaled`` suffixes from an image filename.

    ``photo-1024x768-scaled.jpg`` becomes ``photo.jpg``. The rules are applied
    repeatedly, so the result is a fixpoint.
    """
    while True:
        cleaned = filename
        for _name, pattern in FILENAME_RULES:
            cleaned = pattern.sub('', cleaned)
        if cleaned == filename:
            return cleaned
        filename = cleaned


__all__ = [
    'IMAGE_EXTENSION_PATTERN',
    'SCRAPED_IMAGE_PATTERN',
    'is_image_url',
    'filename_from_url',
    'is_absolute_http_url',
    'resolve_url',
    'encode_url',
    'url_to_local_path',
    'FILENAME_RULES',
    'clean_filename',
]
