import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import requests
from bs4 import BeautifulSoup
from nltk.tokenize.punkt import PunktSentenceTokenizer

from .preprocess import collapse_whitespace

_STRIPPED_TAGS = ["script", "style", "nav", "header", "footer", "noscript"]
_BLOCKED_HOSTS = ("youtube.com",)
_QUERY_LENGTH = 150


class SearchProvider(ABC):
    """Web search backend returning result URLs for a text query."""

    @abstractmethod
    def search(self, query: str, limit: int) -> List[str]: ...


class WebScraper:
    """Fetch pages and reduce them to their visible body text.

    Without an injected ``session`` every ``scrape`` call opens and closes its
    own ``requests.Session``, so one scraper can serve several threads. An
    injected session is reused for every call and must tolerate that.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 5.0,
        max_chars: int = 10_000,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.max_chars = max_chars

    def scrape(self, url: str) -> str:
        try:
            response = self._get(url)
            response.raise_for_status()
        except requests.RequestException as exc:
            logging.warning("Failed to scrape %s: %s", url, exc)
            return ""
        return self.extract(response.text)

    def _get(self, url: str) -> requests.Response:
        if self.session is not None:
            return self.session.get(url, timeout=self.timeout)
        with requests.Session() as session:
            return session.get(url, timeout=self.timeout)

    def extract(self, html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(_STRIPPED_TAGS):
            tag.decompose()
        body = soup.body or soup
        text = collapse_whitespace(body.get_text(separator=" "))
        return text[: self.max_chars]


def filter_urls(urls: Iterable[str]) -> List[str]:
    seen = set()
    kept: List[str] = []
    for url in urls:
        if not url or url in seen:
            continue
        if any(host in url for host in _BLOCKED_HOSTS):
            continue
        seen.add(url)
        kept.append(url)
    return kept


def web_document_id(url: str) -> str:
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
    return f"web-{digest[:12]}"


def split_sentences(text: str) -> List[str]:
    tokenizer = PunktSentenceTokenizer()
    return [sentence for sentence in tokenizer.tokenize(text) if sentence.strip()]


def build_search_queries(text: str) -> List[str]:
    """Pick representative sentences of ``text`` to use as search queries.

    The first sentence is always used; the middle sentence joins it for texts
    longer than five sentences and the second-to-last one for texts longer
    than ten.
    """
    clean = collapse_whitespace(text)
    sentences = split_sentences(clean)
    queries: List[str] = []
    if sentences:
        queries.append(sentences[0][:_QUERY_LENGTH])
    if len(sentences) > 5:
        queries.append(sentences[len(sentences) // 2][:_QUERY_LENGTH])
    if len(sentences) > 10:
        queries.append(sentences[-2][:_QUERY_LENGTH])
    if not queries and clean:
        queries.append(clean[:_QUERY_LENGTH])
    return queries
