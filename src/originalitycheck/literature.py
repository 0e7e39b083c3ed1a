"""Literature index clients and the retriever that fans out to them."""

from __future__ import annotations

import json
import logging
import re
import xml.etree.ElementTree as ET
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol
from urllib.parse import urljoin

import requests

from .exceptions import LiteratureSearchError
from .models import CandidatePaper

logger = logging.getLogger(__name__)

QUERY_SOURCE_CHARS = 500
QUERY_MIN_TOKEN_LENGTH = 4
QUERY_MAX_TOKENS = 10

SEMANTIC_SCHOLAR_LIMIT = 10
SEMANTIC_SCHOLAR_FIELDS = "title,abstract,url,authors,year"
ARXIV_MAX_RESULTS = 8

_ATOM_NS = "{http://www.w3.org/2005/Atom}"
_PUNCTUATION_PATTERN = re.compile(r"[^\w\s]")


def build_search_query(text: str) -> str:
    """Build the single keyword query sent to every index."""

    cleaned = _PUNCTUATION_PATTERN.sub(" ", text[:QUERY_SOURCE_CHARS])
    tokens = [token for token in cleaned.split() if len(token) >= QUERY_MIN_TOKEN_LENGTH]
    return " ".join(tokens[:QUERY_MAX_TOKENS])


class LiteratureIndex(Protocol):
    name: str

    def search(self, query: str) -> list[CandidatePaper]: ...


class _HttpIndex:
    """Shared single-attempt GET plumbing for index clients."""

    name = ""

    def __init__(
        self,
        base_url: str,
        timeout_sec: int = 30,
        trust_env: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.session = session or requests.Session()
        self.session.trust_env = trust_env

    def _build_url(self, path: str) -> str:
        return urljoin(f"{self.base_url}/", path.lstrip("/"))

    def _get(self, path: str, params: dict[str, Any]) -> requests.Response:
        try:
            response = self.session.get(
                self._build_url(path),
                params=params,
                timeout=self.timeout_sec,
            )
        except requests.RequestException as exc:
            raise LiteratureSearchError(f"{self.name} request failed: {exc}") from exc

        if not response.ok:
            raise LiteratureSearchError(
                f"{self.name} HTTP error {response.status_code}: {response.text[:200]}"
            )
        return response


class SemanticScholarIndex(_HttpIndex):
    """Structured metadata index (Semantic Scholar Graph API)."""

    name = "Semantic Scholar"

    def __init__(
        self,
        base_url: str = "https://api.semanticscholar.org/graph/v1",
        api_key: str | None = None,
        timeout_sec: int = 30,
        trust_env: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            timeout_sec=timeout_sec,
            trust_env=trust_env,
            session=session,
        )
        self.session.headers.update({"Accept": "application/json"})
        if api_key:
            self.session.headers["x-api-key"] = api_key

    def search(self, query: str) -> list[CandidatePaper]:
        response = self._get(
            "/paper/search",
            params={
                "query": query,
                "limit": SEMANTIC_SCHOLAR_LIMIT,
                "fields": SEMANTIC_SCHOLAR_FIELDS,
            },
        )
        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise LiteratureSearchError(f"Non-JSON response from {self.name}") from exc
        return parse_semantic_scholar_payload(payload, source=self.name)


class ArxivIndex(_HttpIndex):
    """Preprint index (arXiv Atom API)."""

    name = "arXiv"

    def __init__(
        self,
        base_url: str = "http://export.arxiv.org",
        timeout_sec: int = 30,
        trust_env: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            timeout_sec=timeout_sec,
            trust_env=trust_env,
            session=session,
        )

    def search(self, query: str) -> list[CandidatePaper]:
        response = self._get(
            "/api/query",
            params={"search_query": f"all:{query}", "max_results": ARXIV_MAX_RESULTS},
        )
        return parse_arxiv_feed(response.content, source=self.name)


def parse_semantic_scholar_payload(payload: Any, source: str) -> list[CandidatePaper]:
    if not isinstance(payload, dict):
        return []
    items = payload.get("data")
    if not isinstance(items, list):
        return []

    papers: list[CandidatePaper] = []
    for item in items[:SEMANTIC_SCHOLAR_LIMIT]:
        if not isinstance(item, dict):
            continue
        title = item.get("title")
        abstract = item.get("abstract")
        if not isinstance(title, str) or not isinstance(abstract, str):
            continue
        if not title.strip() or not abstract.strip():
            continue
        url = item.get("url")
        if not isinstance(url, str) or not url:
            paper_id = item.get("paperId") or ""
            url = f"https://www.semanticscholar.org/paper/{paper_id}"
        papers.append(
            CandidatePaper(
                title=title.strip(),
                abstract=abstract.strip(),
                source=source,
                url=url,
            )
        )
    return papers


def parse_arxiv_feed(content: bytes | str, source: str) -> list[CandidatePaper]:
    try:
        root = ET.fromstring(content)
    except ET.ParseError:
        logger.warning("Discarding malformed %s feed", source)
        return []

    papers: list[CandidatePaper] = []
    for entry in root.findall(f"{_ATOM_NS}entry")[:ARXIV_MAX_RESULTS]:
        title = _collapse_lines(entry.findtext(f"{_ATOM_NS}title"))
        summary = _collapse_lines(entry.findtext(f"{_ATOM_NS}summary"))
        if not title or not summary:
            continue
        papers.append(
            CandidatePaper(
                title=title,
                abstract=summary,
                source=source,
                url=(entry.findtext(f"{_ATOM_NS}id") or "").strip(),
            )
        )
    return papers


def _collapse_lines(value: str | None) -> str:
    if not value:
        return ""
    return value.replace("\n", " ").strip()


class LiteratureRetriever:
    """Query every index once and concatenate their normalized papers."""

    def __init__(self, indices: list[LiteratureIndex], max_workers: int = 2) -> None:
        self.indices = indices
        self.max_workers = max(1, max_workers)

    def retrieve(self, text: str) -> list[CandidatePaper]:
        query = build_search_query(text)
        if not query or not self.indices:
            logger.info("No usable search terms; skipping literature retrieval")
            return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(self._search_one, index, query) for index in self.indices
            ]
            results = [future.result() for future in futures]

        papers = [paper for batch in results for paper in batch]
        logger.info("Fetched %d papers for query %r", len(papers), query)
        return papers

    def _search_one(self, index: LiteratureIndex, query: str) -> list[CandidatePaper]:
        try:
            return index.search(query)
        except Exception as exc:
            logger.warning("%s search failed: %s", index.name, exc)
            return []
