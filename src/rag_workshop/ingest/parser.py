"""Loading source documents from local files and web pages."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import httpx
from markdownify import markdownify

from rag_workshop.errors import TransportFailure
from rag_workshop.types import ParsedDocument

logger = logging.getLogger(__name__)


class Parser(ABC):
    """Base parser interface used by the ingest pipeline."""

    extensions: tuple[str, ...] = ()

    @abstractmethod
    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        """Read a file into text + metadata."""


class TextParser(Parser):
    """Parser for plain text documents."""

    extensions = (".txt", ".log")

    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        text = path.read_text(encoding="utf-8")
        return ParsedDocument(
            doc_id=doc_id or path.stem,
            text=text,
            metadata={"source": str(path), "format": "text"},
        )


class MarkdownParser(Parser):
    """Parser for markdown documents."""

    extensions = (".md", ".markdown")

    def parse(self, path: Path, *, doc_id: str | None = None) -> ParsedDocument:
        text = path.read_text(encoding="utf-8")
        return ParsedDocument(
            doc_id=doc_id or path.stem,
            text=text,
            metadata={"source": str(path), "format": "markdown"},
        )


class ParserRegistry:
    """Maps file extension to parser implementation."""

    def __init__(self, parsers: list[Parser] | None = None) -> None:
        self._parsers: dict[str, Parser] = {}
        for parser in parsers or [TextParser(), MarkdownParser()]:
            self.register(parser)

    def register(self, parser: Parser) -> None:
        for extension in parser.extensions:
            self._parsers[extension.lower()] = parser

    def parse_path(self, path: str | Path, *, doc_id: str | None = None) -> ParsedDocument:
        file_path = Path(path)
        parser = self._parsers.get(file_path.suffix.lower())
        if parser is None:
            raise ValueError(f"No parser registered for extension: {file_path.suffix}")
        return parser.parse(file_path, doc_id=doc_id)


class WebPageLoader:
    """Downloads an HTML page and converts it to Markdown text.

    `start` and `end` optionally narrow the page to the region of interest:
    everything up to the first `start` is dropped (later occurrences of
    `start` are removed too), and everything from the first `end` onwards is
    dropped.
    """

    def __init__(self, http_client: httpx.Client | None = None) -> None:
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(follow_redirects=True)

    def __enter__(self) -> "WebPageLoader":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def load(self, url: str, *, start: str = "", end: str = "") -> ParsedDocument:
        try:
            response = self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportFailure(f"could not fetch {url}: {exc}", cause=exc) from exc

        markdown = markdownify(response.text)
        logger.debug("Fetched %s (%d characters of markdown)", url, len(markdown))
        return ParsedDocument(
            doc_id=url,
            text=narrow_text(markdown, start=start, end=end),
            metadata={"source": url, "format": "html"},
        )


def narrow_text(text: str, *, start: str = "", end: str = "") -> str:
    if start:
        text = "".join(text.split(start)[1:])
    if end:
        text = text.split(end)[0]
    return text
