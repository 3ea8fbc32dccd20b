from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from .stopwords import DEFAULT_STOP_WORDS


@dataclass
class Document:
    doc_id: str
    filename: str
    text: str


@dataclass
class Attachment:
    attachment_id: str
    filename: str
    data: bytes


@dataclass
class Article:
    article_id: str
    title: Optional[str] = None
    content: Optional[str] = None


@dataclass
class SimilarityPair:
    a_id: str
    b_id: str
    score: float


@dataclass
class SimilarityResult:
    docs: List[Document]
    pairs: List[SimilarityPair]


@dataclass
class DocumentExcerpt:
    doc_id: str
    filename: str
    text_excerpt: str


@dataclass
class SimilarityReport:
    message: str
    docs: List[DocumentExcerpt]
    pairs: List[SimilarityPair]
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WebCheckResult:
    score: float
    sources: List[str] = field(default_factory=list)


@dataclass
class AiDetectionResult:
    score: int
    details: List[str] = field(default_factory=list)


@dataclass
class CodeSimilaritySummary:
    max_similarity: Optional[float] = None
    avg_similarity: Optional[float] = None
    pairs: List[Dict[str, Any]] = field(default_factory=list)
    notice: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.notice is not None:
            return {"notice": self.notice}
        return {
            "max_similarity": self.max_similarity,
            "avg_similarity": self.avg_similarity,
            "pairs": list(self.pairs),
        }


@dataclass
class PlagiarismReport:
    article_id: str
    summary: Dict[str, Any]
    run_by: Optional[str] = None
    status: str = "completed"
    report_id: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class ScorerConfig:
    min_token_length: int = 2
    stop_words: FrozenSet[str] = DEFAULT_STOP_WORDS
    max_text_length: int = 200_000
    max_terms_per_document: Optional[int] = None
    score_precision: Optional[int] = 4


@dataclass
class CheckConfig:
    threshold: float = 0.6
    top_n: int = 20
    max_top_n: int = 200
    search_results_per_query: int = 5
    max_scraped_urls: int = 5
    scrape_timeout: float = 5.0
    scrape_max_chars: int = 10_000
    min_corpus_page_length: int = 100
    min_web_check_page_length: int = 200
    min_web_check_text_length: int = 100
    web_source_threshold: float = 0.2
    web_score_scale: float = 0.9
    max_web_sources: int = 5
    excerpt_length: int = 200
    query_length: int = 300
