import logging
import math
import tempfile
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence

from .ai_heuristics import detect_ai_content
from .code_similarity import CodeSimilarityTool
from .extraction import attachments_to_documents, extract_text
from .models import (
    Article,
    Attachment,
    CheckConfig,
    Document,
    DocumentExcerpt,
    PlagiarismReport,
    SimilarityReport,
    WebCheckResult,
)
from .preprocess import collapse_whitespace, strip_html
from .reports import ReportStore
from .tfidf import TfidfScorer, filter_pairs
from .web import (
    SearchProvider,
    WebScraper,
    build_search_queries,
    filter_urls,
    web_document_id,
)

MAIN_CONTENT_ID = "main-content"
MAIN_CONTENT_FILENAME = "Article Content"
INPUT_TEXT_ID = "input-text"
INPUT_TEXT_FILENAME = "Input Text"


class SimilarityCheckService:
    """Article similarity and plagiarism workflows around the TF-IDF scorer.

    Web search, the code-similarity tool and report storage are optional
    collaborators; when one is missing the corresponding step is skipped.
    """

    def __init__(
        self,
        config: Optional[CheckConfig] = None,
        scorer: Optional[TfidfScorer] = None,
        search: Optional[SearchProvider] = None,
        scraper: Optional[WebScraper] = None,
        code_tool: Optional[CodeSimilarityTool] = None,
        report_store: Optional[ReportStore] = None,
    ) -> None:
        self.config = config or CheckConfig()
        self.scorer = scorer or TfidfScorer()
        self.search = search
        self.scraper = scraper or WebScraper(
            timeout=self.config.scrape_timeout,
            max_chars=self.config.scrape_max_chars,
        )
        self.code_tool = code_tool
        self.report_store = report_store

    def run_similarity_check(
        self,
        article: Article,
        attachments: Sequence[Attachment] = (),
        include_web: bool = True,
        threshold: Optional[float] = None,
        top_n: Optional[int] = None,
    ) -> SimilarityReport:
        threshold = self._resolve_threshold(threshold)
        top_n = self._resolve_top_n(top_n)
        meta = {"method": "tfidf", "threshold": threshold, "top_n": top_n}
        self._check_attachment_ids(attachments)

        documents: List[Document] = []
        if article.content:
            documents.append(
                Document(
                    doc_id=MAIN_CONTENT_ID,
                    filename=MAIN_CONTENT_FILENAME,
                    text=strip_html(article.content),
                )
            )
        documents.extend(attachments_to_documents(attachments))
        if include_web and self.search is not None:
            query = self._article_query(article)
            if query:
                logging.info(
                    "Running web search for article %s with query: %s...",
                    article.article_id,
                    query[:50],
                )
                documents.extend(self._web_documents(query))

        if len(documents) < 2:
            return SimilarityReport(
                message="No similar content found (no attachments or web results)",
                docs=[],
                pairs=[],
                meta=meta,
            )

        result = self.scorer.compute_similarities(documents)
        pairs = filter_pairs(result.pairs, threshold=threshold, top_n=top_n)
        excerpt_length = self.config.excerpt_length
        docs = [
            DocumentExcerpt(
                doc_id=doc.doc_id,
                filename=doc.filename,
                text_excerpt=doc.text[:excerpt_length],
            )
            for doc in result.docs
        ]
        return SimilarityReport(
            message="Similarity check completed", docs=docs, pairs=pairs, meta=meta
        )

    def check_web_similarity(self, text: str) -> WebCheckResult:
        """Compare ``text`` against web pages found by searching its sentences.

        The score is the best pair similarity scaled so that
        ``web_score_scale`` maps to 100.
        """
        if not text or len(text) < self.config.min_web_check_text_length:
            return WebCheckResult(score=0.0)
        if self.search is None:
            return WebCheckResult(score=0.0)

        clean = collapse_whitespace(text)
        urls: List[str] = []
        for query in build_search_queries(clean):
            urls.extend(self._search(query))
        urls = filter_urls(urls)[: self.config.max_scraped_urls]
        if not urls:
            return WebCheckResult(score=0.0)

        pages = [
            Document(doc_id=url, filename=url, text=page)
            for url, page in zip(urls, self._scrape_all(urls))
            if len(page) > self.config.min_web_check_page_length
        ]
        if not pages:
            return WebCheckResult(score=0.0)

        documents = [
            Document(doc_id=INPUT_TEXT_ID, filename=INPUT_TEXT_FILENAME, text=clean)
        ] + pages
        result = self.scorer.compute_similarities(documents)

        max_score = 0.0
        sources: List[str] = []
        for pair in result.pairs:
            if INPUT_TEXT_ID not in (pair.a_id, pair.b_id):
                continue
            other = pair.b_id if pair.a_id == INPUT_TEXT_ID else pair.a_id
            max_score = max(max_score, pair.score)
            if pair.score > self.config.web_source_threshold:
                sources.append(f"{other} ({pair.score * 100:.0f}%)")

        final_score = min(100.0, (max_score / self.config.web_score_scale) * 100)
        return WebCheckResult(
            score=round(final_score, 1),
            sources=sources[: self.config.max_web_sources],
        )

    def run_plagiarism_check(
        self,
        article: Article,
        attachments: Sequence[Attachment] = (),
        run_by: Optional[str] = None,
        language: str = "python3",
    ) -> PlagiarismReport:
        has_content = bool(article.content and article.content.strip())
        if not has_content and not attachments:
            raise ValueError("No content or attachments found to run checks on")

        with tempfile.TemporaryDirectory(prefix=f"jplag-{article.article_id}-") as tmp:
            work_root = Path(tmp)
            submissions = work_root / "submissions"
            submissions.mkdir()

            combined_parts: List[str] = []
            if has_content:
                plain = strip_html(article.content)
                combined_parts.append(plain + "\n\n")
                (submissions / f"article_content_{article.article_id}.txt").write_text(
                    plain, encoding="utf-8"
                )
            for attachment in attachments:
                filename = Path(attachment.filename or attachment.attachment_id).name
                target = submissions / f"{attachment.attachment_id}-{filename}"
                target.write_bytes(attachment.data)
                combined_parts.append(extract_text(filename, attachment.data) + "\n")
            combined = "".join(combined_parts)

            ai_result = detect_ai_content(combined)
            web_result = WebCheckResult(score=0.0)
            if len(combined) > self.config.min_web_check_text_length:
                web_result = self.check_web_similarity(combined)

            if self.code_tool is not None:
                summary = self.code_tool.run(work_root, language).to_dict()
            else:
                summary = {"notice": "jplag-failed-or-skipped"}

        summary["ai_score"] = ai_result.score
        summary["ai_details"] = ai_result.details
        summary["web_score"] = web_result.score
        summary["web_sources"] = web_result.sources

        report = PlagiarismReport(
            article_id=article.article_id, summary=summary, run_by=run_by
        )
        if self.report_store is not None:
            self.report_store.save(report)
        else:
            report.report_id = uuid.uuid4().hex
        logging.info(
            "Plagiarism check for article %s completed (report %s)",
            article.article_id,
            report.report_id,
        )
        return report

    def _check_attachment_ids(self, attachments: Sequence[Attachment]) -> None:
        seen = {MAIN_CONTENT_ID}
        for attachment in attachments:
            if attachment.attachment_id in seen:
                raise ValueError(
                    f"Attachment id {attachment.attachment_id!r} conflicts with "
                    "another document in the check"
                )
            seen.add(attachment.attachment_id)

    def _resolve_threshold(self, threshold: Optional[float]) -> float:
        if threshold is None:
            return self.config.threshold
        if math.isnan(threshold):
            return 0.0
        return threshold

    def _resolve_top_n(self, top_n: Optional[int]) -> int:
        if top_n is None:
            return self.config.top_n
        return max(1, min(self.config.max_top_n, top_n))

    def _article_query(self, article: Article) -> str:
        if article.title:
            return article.title
        if article.content:
            return collapse_whitespace(strip_html(article.content))[
                : self.config.query_length
            ]
        return ""

    def _web_documents(self, query: str) -> List[Document]:
        urls = filter_urls(self._search(query))
        documents: List[Document] = []
        for url, page in zip(urls, self._scrape_all(urls)):
            if len(page) > self.config.min_corpus_page_length:
                documents.append(
                    Document(doc_id=web_document_id(url), filename=url, text=page)
                )
        return documents

    def _search(self, query: str) -> List[str]:
        if self.search is None:
            return []
        try:
            return list(self.search.search(query, self.config.search_results_per_query))
        except Exception as exc:
            logging.warning("Web search failed for %r: %s", query[:50], exc)
            return []

    def _scrape_all(self, urls: Sequence[str]) -> List[str]:
        if not urls:
            return []
        with ThreadPoolExecutor(max_workers=len(urls)) as pool:
            return list(pool.map(self.scraper.scrape, urls))
