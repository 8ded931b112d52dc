"""Document sources: turn a Document into its raw text.

Every source implements ``fetch(document, timeout=None) -> str`` and raises
FetchError when the text is unavailable. Sources do not cache or retry.
"""

import http.client
import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from bookindex.indexer.models import Document
from bookindex.indexer.tokenizer import decode_text

from .errors import FetchError

logger = logging.getLogger(__name__)

URL_SCHEMES = ("http", "https")
USER_AGENT = "bookindex/0.1"


def is_url(source: str) -> bool:
    try:
        scheme = urlparse(source).scheme
    except ValueError:  # e.g. an unbalanced IPv6 bracket
        return False
    return scheme.lower() in URL_SCHEMES


class DocumentSource:
    """Base class for text suppliers."""

    def fetch(self, document: Document, timeout: Optional[float] = None) -> str:
        raise NotImplementedError


class InlineSource(DocumentSource):
    """The document's `source` field is the text itself."""

    def fetch(self, document: Document, timeout: Optional[float] = None) -> str:
        return document.source


class FileSource(DocumentSource):
    """Read the document from a local path, tolerating bad encodings."""

    def fetch(self, document: Document, timeout: Optional[float] = None) -> str:
        path = Path(document.source)
        try:
            data = path.read_bytes()
        except (OSError, ValueError) as exc:
            raise FetchError(f"Cannot read {path}: {exc}") from exc
        return decode_text(data)


class UrlSource(DocumentSource):
    """Download the document over HTTP(S)."""

    def __init__(self, user_agent: str = USER_AGENT):
        self.user_agent = user_agent

    def fetch(self, document: Document, timeout: Optional[float] = None) -> str:
        logger.debug("Downloading %s", document.source)
        try:
            request = urllib.request.Request(document.source, headers={"User-Agent": self.user_agent})
            with urllib.request.urlopen(request, timeout=timeout) as response:
                data = response.read()
                charset = response.headers.get_content_charset() or "utf-8"
        except urllib.error.HTTPError as exc:
            raise FetchError(f"HTTP {exc.code} for {document.source}") from exc
        except (OSError, http.client.HTTPException, ValueError) as exc:  # URLError and timeouts are OSErrors
            raise FetchError(f"Cannot download {document.source}: {exc}") from exc
        try:
            return data.decode(charset, errors="replace")
        except LookupError:
            return decode_text(data)


class DefaultSource(DocumentSource):
    """http(s) sources go to UrlSource, everything else is a file path."""

    def __init__(self, url_source: Optional[UrlSource] = None, file_source: Optional[FileSource] = None):
        self.url_source = url_source or UrlSource()
        self.file_source = file_source or FileSource()

    def fetch(self, document: Document, timeout: Optional[float] = None) -> str:
        if is_url(document.source):
            return self.url_source.fetch(document, timeout)
        return self.file_source.fetch(document, timeout)
