"""Document Store — fetches documentation pages or reads them from the cache.

Both the raw markup (``<name>.html``) and its parsed tree
(``<name>.html.tree.json``) are cached. The tree is always handed out as
rebuilt from its JSON form, so a cold run and a warm run extract from the
exact same tree.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import httpx
from bs4 import BeautifulSoup
from bs4.element import (
    CData,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    PageElement,
    ProcessingInstruction,
    Tag,
)

from chargebee_typegen.errors import RetrievalFailed

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://apidocs.chargebee.com/docs/api"
DEFAULT_USER_AGENT = "chargebee-typegen"
PARSER = "html.parser"

STRING_TYPES = {
    "comment": Comment,
    "doctype": Doctype,
    "cdata": CData,
    "declaration": Declaration,
    "processing_instruction": ProcessingInstruction,
}
STRING_KINDS = {cls: kind for kind, cls in STRING_TYPES.items()}


@dataclass(frozen=True)
class ApiPage:
    contents: str
    tree: BeautifulSoup


def parse_markup(contents: str) -> BeautifulSoup:
    return BeautifulSoup(contents, PARSER)


def dump_tree(node: PageElement) -> dict:
    """Serialise a tree into plain JSON-compatible data."""
    if isinstance(node, BeautifulSoup):
        return {"type": "root", "children": [dump_tree(child) for child in node.contents]}
    if isinstance(node, Tag):
        return {
            "type": "element",
            "tagName": node.name,
            "properties": dict(node.attrs),
            "children": [dump_tree(child) for child in node.contents],
        }
    return {"type": STRING_KINDS.get(type(node), "text"), "value": str(node)}


def load_tree(data: dict) -> BeautifulSoup:
    """Rebuild a tree from the output of ``dump_tree``."""
    soup = BeautifulSoup("", PARSER)
    for child in data.get("children", []):
        soup.append(_load_node(soup, child))
    return soup


def _load_node(soup: BeautifulSoup, data: dict) -> PageElement:
    if data["type"] == "element":
        tag = soup.new_tag(data["tagName"], attrs=data.get("properties", {}))
        for child in data.get("children", []):
            tag.append(_load_node(soup, child))
        return tag
    return STRING_TYPES.get(data["type"], NavigableString)(data["value"])


class DocumentStore:
    """Fetch-or-read-from-cache access to the documentation pages."""

    def __init__(
        self,
        cache_dir: Path,
        base_url: str = DEFAULT_BASE_URL,
        language: str = "node",
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ):
        self.cache_dir = Path(cache_dir)
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "DocumentStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def page_url(self, name: str) -> str:
        return f"{self.base_url}/{name}"

    def cache_paths(self, name: str) -> tuple[Path, Path]:
        filename = f"{name}.html" if name else "index.html"
        return self.cache_dir / filename, self.cache_dir / f"{filename}.tree.json"

    async def get_page(self, name: str) -> ApiPage:
        """Return the raw markup and parsed tree of page ``name`` ("" is the index)."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        html_path, tree_path = self.cache_paths(name)
        title = name or "index"

        if not html_path.exists():
            logger.info("%s: retrieving resource from documentation server", title)
            contents = await self._fetch(name)
            html_path.write_text(contents, encoding="utf-8")
        else:
            logger.debug("%s: retrieving resource from local cache", title)
            contents = html_path.read_text(encoding="utf-8")

        if not tree_path.exists():
            data = dump_tree(parse_markup(contents))
            tree_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        else:
            logger.debug("%s: reading tree from cache", title)
            data = json.loads(tree_path.read_text(encoding="utf-8"))

        return ApiPage(contents=contents, tree=load_tree(data))

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
            )
        return self._client

    async def _fetch(self, name: str) -> str:
        try:
            response = await self._http().get(self.page_url(name), params={"lang": self.language})
        except httpx.HTTPError as exc:
            raise RetrievalFailed(name, None, str(exc) or type(exc).__name__) from exc
        if not response.is_success:
            raise RetrievalFailed(name, response.status_code, response.reason_phrase)
        return response.text
