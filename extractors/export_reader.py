"""Reads a WordPress WXR export into a nested mapping tree."""

import logging
from pathlib import Path
from typing import Any, Dict, Union

from lxml import etree

logger = logging.getLogger('wordpress_markdown_exporter.extractors.exportreader')


class ExportParseError(Exception):
    """The export file cannot be read or is not a WordPress export."""
    pass


class ExportReader:
    """
    Parses an export with lxml and decodes it into plain dicts and lists.

    Every element becomes a mapping from prefix-stripped child names to lists
    of child values. Attributes go under ``"$"``. Text goes under ``"_"`` when
    the element also has attributes or children; a leaf element without
    attributes decodes to its trimmed text.
    """

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.extractors.exportreader')

    def read(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Read and decode the export file at ``path``.

        Raises:
            ExportParseError: If the file is missing, malformed or not an RSS export
        """
        path = Path(path)
        if not path.is_file():
            raise ExportParseError(f"Export file not found: {path}")

        self.logger.info(f"Parsing {path}")
        try:
            with open(path, 'rb') as f:
                return self.read_bytes(f.read())
        except OSError as e:
            raise ExportParseError(f"Failed to read {path}: {e}") from e

    def read_bytes(self, content: bytes) -> Dict[str, Any]:
        """Decode an export held in memory."""
        parser = etree.XMLParser(huge_tree=True, resolve_entities=False, no_network=True)
        try:
            root = etree.fromstring(content, parser)
        except etree.XMLSyntaxError as e:
            raise ExportParseError(f"Export is not well-formed XML: {e}") from e

        name = etree.QName(root).localname
        if name != 'rss':
            raise ExportParseError(f"Expected an <rss> document, found <{name}>")

        return {name: self._decode(root)}

    def _decode(self, element) -> Any:
        children = [child for child in element if isinstance(child.tag, str)]
        text = (element.text or '').strip()

        if not children and not element.attrib:
            return text

        node: Dict[str, Any] = {}
        if element.attrib:
            node['$'] = {etree.QName(key).localname: value for key, value in element.attrib.items()}
        for child in children:
            node.setdefault(etree.QName(child).localname, []).append(self._decode(child))
        if text:
            node['_'] = text
        return node


def first_value(item: Dict[str, Any], key: str, default: str = '') -> str:
    """Return the text of the first ``key`` child of a decoded export item."""
    values = item.get(key)
    if not values:
        return default
    value = values[0]
    if isinstance(value, dict):
        return value.get('_', default)
    return value


__all__ = ['ExportReader', 'ExportParseError', 'first_value']
