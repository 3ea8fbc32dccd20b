import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import Document, ScorerConfig


_WORD_RE = re.compile(r"[^\W_]+")
_WHITESPACE_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]+>")


@dataclass
class TokenizerResult:
    tokens: List[str]


class Preprocessor:
    def __init__(self, config: Optional[ScorerConfig] = None) -> None:
        self.config = config or ScorerConfig()

    def normalize(self, text: str) -> str:
        normalized = _WHITESPACE_RE.sub(" ", text).strip()
        if len(normalized) > self.config.max_text_length:
            normalized = normalized[: self.config.max_text_length]
        return normalized

    def tokenize(self, text: str) -> TokenizerResult:
        tokens: List[str] = []
        min_length = self.config.min_token_length
        stop_words = self.config.stop_words
        for match in _WORD_RE.finditer(text.lower()):
            token = match.group(0)
            if len(token) < min_length or token in stop_words:
                continue
            tokens.append(token)
        return TokenizerResult(tokens=tokens)

    def prepare(self, document: Document) -> Tuple[Document, TokenizerResult]:
        normalized = Document(
            doc_id=document.doc_id,
            filename=document.filename,
            text=self.normalize(document.text),
        )
        return normalized, self.tokenize(normalized.text)


def strip_html(markup: str) -> str:
    return _TAG_RE.sub(" ", markup)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()
