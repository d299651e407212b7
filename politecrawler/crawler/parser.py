"""
Link discovery: naive href scanning and URL resolution.

The scanner looks for the literal marker href=" and takes everything up
to the next double quote. It is not an HTML parser and does not handle
single quotes, unquoted attributes, comments or entities.
"""

import logging
from dataclasses import dataclass, field
from typing import List
from urllib.parse import urlsplit

from .errors import MalformedUrlError

HREF_MARKER = 'href="'
ABSOLUTE_SCHEMES = ('http://', 'https://')


@dataclass
class ParsedContent:
    """Container for links discovered on a fetched page."""
    url: str
    links: List[str] = field(default_factory=list)


def extract_links(html_content: str) -> List[str]:
    """Return every raw href="..." value in document order."""
    links = []
    pos = 0
    while True:
        start = html_content.find(HREF_MARKER, pos)
        if start < 0:
            break
        start += len(HREF_MARKER)
        end = html_content.find('"', start)
        if end < 0:
            break
        links.append(html_content[start:end])
        pos = end + 1
    return links


def is_candidate(link: str) -> bool:
    """Check whether a raw link is worth resolving."""
    if link.startswith(ABSOLUTE_SCHEMES):
        return True
    return not (link.startswith('#') or link.startswith('javascript:'))


def _split_base(url: str):
    parsed = urlsplit(url)
    if not parsed.scheme or not parsed.netloc:
        raise MalformedUrlError(url)
    return parsed


def extract_domain(url: str) -> str:
    """Return the lowercased network location (host[:port]) of url."""
    try:
        parsed = _split_base(url)
        host = parsed.hostname
        port = parsed.port
    except ValueError as e:
        raise MalformedUrlError(url, str(e)) from e
    if not host:
        raise MalformedUrlError(url)
    return f"{host}:{port}" if port is not None else host


def resolve_url(base_url: str, link: str) -> str:
    """
    Turn link into an absolute URL relative to base_url.

    Absolute http(s) links are returned unchanged. Links starting with
    "/" replace the base path entirely. Anything else is appended to the
    base URL up to and including its last "/". Dot segments, queries and
    fragments are left as they are.
    """
    if link.startswith(ABSOLUTE_SCHEMES):
        return link

    if link.startswith('/'):
        try:
            parsed = _split_base(base_url)
            host = parsed.hostname
            port = parsed.port
        except ValueError as e:
            raise MalformedUrlError(base_url, str(e)) from e
        if not host:
            raise MalformedUrlError(base_url)
        if ':' in host:
            host = f"[{host}]"
        authority = f"{host}:{port}" if port is not None else host
        return f"{parsed.scheme}://{authority}{link}"

    last_slash = base_url.rfind('/')
    base_dir = base_url[:last_slash + 1] if last_slash >= 0 else base_url
    return base_dir + link


def decode_content(content: bytes) -> str:
    """Decode page bytes, falling back to latin-1 which never fails."""
    try:
        return content.decode('utf-8')
    except UnicodeDecodeError:
        return content.decode('latin-1')


class ContentParser:
    """
    Extracts and resolves outgoing links from fetched pages.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def parse(self, url: str, content: bytes) -> ParsedContent:
        """
        Discover links on a page.

        Args:
            url: The URL the content was fetched from
            content: Raw page bytes

        Returns:
            ParsedContent with absolute links in document order, without
            repeats. Links that cannot be resolved are skipped.
        """
        parsed_content = ParsedContent(url=url)
        seen = set()

        for link in extract_links(decode_content(content)):
            if not is_candidate(link):
                continue
            try:
                absolute_url = resolve_url(url, link)
            except MalformedUrlError as e:
                self.logger.debug(f"Skipping link {link!r} on {url}: {e}")
                continue
            if absolute_url not in seen:
                seen.add(absolute_url)
                parsed_content.links.append(absolute_url)

        self.logger.debug(f"Parsed {url}: {len(parsed_content.links)} links")
        return parsed_content
