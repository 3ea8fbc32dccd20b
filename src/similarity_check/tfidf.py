import logging
import math
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from .models import Document, ScorerConfig, SimilarityPair, SimilarityResult
from .preprocess import Preprocessor


class InvalidInputError(ValueError):
    """Raised when the scorer is called outside its input contract."""


class TfidfScorer:
    """Pairwise TF-IDF cosine similarity over a batch of documents.

    Every call builds its own vocabulary and vectors; nothing is cached
    between calls, so independent invocations can run concurrently.

    Term weights:
        tf(t, d) = count(t, d) / total_terms(d)
        idf(t)   = ln((1 + N) / (1 + df(t))) + 1
    """

    def __init__(self, config: Optional[ScorerConfig] = None) -> None:
        self.config = config or ScorerConfig()
        self.preprocessor = Preprocessor(self.config)

    def compute_similarities(self, documents: Sequence[Document]) -> SimilarityResult:
        self._validate(documents)

        docs: List[Document] = []
        counts: List[Counter] = []
        for document in documents:
            normalized, tokenized = self.preprocessor.prepare(document)
            docs.append(normalized)
            counts.append(Counter(tokenized.tokens))

        if len(docs) < 2:
            return SimilarityResult(docs=docs, pairs=[])

        idf = self._inverse_document_frequencies(counts)
        vocabulary = self._build_vocabulary(counts, idf)
        logging.debug(
            "Scoring %d documents over a vocabulary of %d terms",
            len(docs),
            len(vocabulary),
        )
        matrix = self._tfidf_matrix(counts, vocabulary, idf)
        pairs = self._pairwise_scores(docs, matrix)
        pairs.sort(key=lambda pair: (-pair.score, pair.a_id, pair.b_id))
        return SimilarityResult(docs=docs, pairs=pairs)

    @staticmethod
    def _validate(documents: Sequence[Document]) -> None:
        if not isinstance(documents, (list, tuple)):
            raise InvalidInputError(
                f"Expected a list of documents, got {type(documents).__name__}"
            )
        seen = set()
        for position, document in enumerate(documents):
            if not isinstance(document, Document):
                raise InvalidInputError(
                    f"Item {position} is {type(document).__name__}, not Document"
                )
            for name in ("doc_id", "filename", "text"):
                value = getattr(document, name)
                if not isinstance(value, str):
                    raise InvalidInputError(
                        f"Document {position} field '{name}' must be str, "
                        f"got {type(value).__name__}"
                    )
            if document.doc_id in seen:
                raise InvalidInputError(f"Duplicate document id {document.doc_id!r}")
            seen.add(document.doc_id)

    @staticmethod
    def _inverse_document_frequencies(counts: Sequence[Counter]) -> Dict[str, float]:
        total = len(counts)
        document_frequency: Counter = Counter()
        for doc_counts in counts:
            document_frequency.update(doc_counts.keys())
        return {
            term: math.log((1 + total) / (1 + df)) + 1.0
            for term, df in document_frequency.items()
        }

    def _build_vocabulary(
        self, counts: Sequence[Counter], idf: Dict[str, float]
    ) -> List[str]:
        limit = self.config.max_terms_per_document
        if limit is None:
            return sorted(idf)

        selected = set()
        for doc_counts in counts:
            weights = self._term_weights(doc_counts, idf)
            ranked = sorted(weights.items(), key=lambda item: (-item[1], item[0]))
            selected.update(term for term, _ in ranked[: max(limit, 0)])
        return sorted(selected)

    @staticmethod
    def _term_weights(doc_counts: Counter, idf: Dict[str, float]) -> Dict[str, float]:
        total = sum(doc_counts.values())
        if total == 0:
            return {}
        return {term: (freq / total) * idf[term] for term, freq in doc_counts.items()}

    def _tfidf_matrix(
        self,
        counts: Sequence[Counter],
        vocabulary: Sequence[str],
        idf: Dict[str, float],
    ) -> np.ndarray:
        index = {term: position for position, term in enumerate(vocabulary)}
        matrix = np.zeros((len(counts), len(vocabulary)), dtype=np.float64)
        for row, doc_counts in enumerate(counts):
            for term, weight in self._term_weights(doc_counts, idf).items():
                column = index.get(term)
                if column is not None:
                    matrix[row, column] = weight
        return matrix

    def _pairwise_scores(
        self, docs: Sequence[Document], matrix: np.ndarray
    ) -> List[SimilarityPair]:
        norms = np.linalg.norm(matrix, axis=1)
        pairs: List[SimilarityPair] = []
        for i in range(len(docs)):
            for j in range(i + 1, len(docs)):
                a_id, b_id = sorted((docs[i].doc_id, docs[j].doc_id))
                pairs.append(
                    SimilarityPair(
                        a_id=a_id,
                        b_id=b_id,
                        score=self._cosine(matrix[i], matrix[j], norms[i], norms[j]),
                    )
                )
        return pairs

    def _cosine(
        self, vec_a: np.ndarray, vec_b: np.ndarray, norm_a: float, norm_b: float
    ) -> float:
        denom = norm_a * norm_b
        if denom == 0:
            return 0.0
        score = float(np.dot(vec_a, vec_b) / denom)
        score = min(max(score, 0.0), 1.0)
        if self.config.score_precision is not None:
            score = round(score, self.config.score_precision)
        return score


def compute_similarities(
    documents: Sequence[Document], config: Optional[ScorerConfig] = None
) -> SimilarityResult:
    return TfidfScorer(config).compute_similarities(documents)


def filter_pairs(
    pairs: Iterable[SimilarityPair],
    threshold: float = 0.0,
    top_n: Optional[int] = None,
) -> List[SimilarityPair]:
    """Keep ranked pairs scoring at least ``threshold``, optionally capped."""
    kept = [pair for pair in pairs if pair.score >= threshold]
    if top_n is not None:
        kept = kept[: max(top_n, 0)]
    return kept
