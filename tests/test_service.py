import pytest

from similarity_check.code_similarity import CodeSimilarityTool
from similarity_check.models import (
    Article,
    Attachment,
    CheckConfig,
    CodeSimilaritySummary,
)
from similarity_check.reports import ReportStore
from similarity_check.service import MAIN_CONTENT_ID, SimilarityCheckService
from similarity_check.web import SearchProvider, web_document_id

FOX = "The quick brown fox jumps over the lazy dog near the river bank"
PHOTOSYNTHESIS = (
    "Photosynthesis converts light energy into chemical energy inside plant "
    "chloroplasts. Chlorophyll molecules absorb mostly blue and red wavelengths "
    "of sunlight. Carbon dioxide and water combine to produce glucose and oxygen. "
    "Stomata regulate gas exchange through leaf surfaces during daylight."
)
FINANCE = (
    "Quarterly revenue growth exceeded analyst expectations across retail banking "
    "divisions. Investors rewarded management with higher valuations after "
    "dividend announcements. Treasury yields fluctuated while currency markets "
    "remained volatile throughout trading sessions."
)


class FakeSearch(SearchProvider):
    def __init__(self, urls, fail=False):
        self.urls = urls
        self.fail = fail
        self.queries = []

    def search(self, query, limit):
        self.queries.append((query, limit))
        if self.fail:
            raise RuntimeError("search backend unavailable")
        return list(self.urls)


class FakeScraper:
    def __init__(self, pages):
        self.pages = pages

    def scrape(self, url):
        return self.pages.get(url, "")


class RecordingTool(CodeSimilarityTool):
    def __init__(self):
        self.submissions = []
        self.language = None

    def run(self, work_root, language):
        self.language = language
        self.submissions = sorted(p.name for p in (work_root / "submissions").iterdir())
        return CodeSimilaritySummary(max_similarity=0.5, avg_similarity=0.5, pairs=[])


def attachment(attachment_id, filename, text):
    return Attachment(attachment_id=attachment_id, filename=filename, data=text.encode("utf-8"))


def test_similarity_check_flags_copied_attachment():
    service = SimilarityCheckService()
    article = Article(article_id="art-1", content=f"<p>{FOX}</p>")
    report = service.run_similarity_check(
        article,
        [attachment("att-1", "copy.txt", FOX), attachment("att-2", "other.txt", FINANCE)],
        include_web=False,
    )

    assert report.message == "Similarity check completed"
    assert [(p.a_id, p.b_id, p.score) for p in report.pairs] == [
        ("att-1", MAIN_CONTENT_ID, 1.0)
    ]
    assert [d.doc_id for d in report.docs] == [MAIN_CONTENT_ID, "att-1", "att-2"]
    assert report.docs[0].filename == "Article Content"
    assert report.docs[0].text_excerpt == FOX
    assert report.meta == {"method": "tfidf", "threshold": 0.6, "top_n": 20}


def test_similarity_check_threshold_and_top_overrides():
    service = SimilarityCheckService()
    article = Article(article_id="art-1", content=FOX)
    report = service.run_similarity_check(
        article,
        [attachment("att-1", "copy.txt", FOX), attachment("att-2", "other.txt", FINANCE)],
        include_web=False,
        threshold=float("nan"),
        top_n=0,
    )
    assert len(report.pairs) == 1
    assert report.meta["threshold"] == 0.0
    assert report.meta["top_n"] == 1

    capped = service.run_similarity_check(
        article, [attachment("att-1", "copy.txt", FOX)], include_web=False, top_n=5000
    )
    assert capped.meta["top_n"] == 200


def test_similarity_check_needs_two_documents():
    report = SimilarityCheckService().run_similarity_check(
        Article(article_id="art-1", content=FOX), [], include_web=False
    )
    assert report.pairs == []
    assert report.docs == []
    assert report.message.startswith("No similar content found")


@pytest.mark.parametrize(
    "attachments",
    [
        [attachment(MAIN_CONTENT_ID, "copy.txt", FOX)],
        [attachment("att-1", "copy.txt", FOX), attachment("att-1", "other.txt", FINANCE)],
    ],
)
def test_similarity_check_rejects_conflicting_attachment_ids(attachments):
    service = SimilarityCheckService()
    with pytest.raises(ValueError, match="conflicts with another document"):
        service.run_similarity_check(
            Article(article_id="art-1", content=FOX), attachments, include_web=False
        )


def test_similarity_check_adds_scraped_pages():
    urls = [
        "https://copy.example/fox",
        "https://www.youtube.com/watch?v=fox",
        "https://thin.example/page",
    ]
    search = FakeSearch(urls)
    scraper = FakeScraper({urls[0]: FOX + " " + FOX, urls[2]: "too short"})
    service = SimilarityCheckService(search=search, scraper=scraper)

    report = service.run_similarity_check(
        Article(article_id="art-1", title="Fox facts", content=FOX)
    )

    assert search.queries == [("Fox facts", 5)]
    assert [d.doc_id for d in report.docs] == [MAIN_CONTENT_ID, web_document_id(urls[0])]
    assert report.docs[1].filename == urls[0]
    assert report.pairs[0].score == pytest.approx(1.0)


def test_query_falls_back_to_stripped_content():
    search = FakeSearch([])
    service = SimilarityCheckService(search=search, scraper=FakeScraper({}))
    service.run_similarity_check(Article(article_id="a", content="<h1>Fox</h1> story"))
    assert search.queries == [("Fox story", 5)]


def test_search_failure_degrades_to_no_web_documents():
    service = SimilarityCheckService(search=FakeSearch([], fail=True), scraper=FakeScraper({}))
    report = service.run_similarity_check(Article(article_id="a", title="t", content=FOX))
    assert report.pairs == []


def test_web_similarity_scores_copied_source():
    urls = ["https://copied.example", "https://unrelated.example"]
    scraper = FakeScraper({urls[0]: PHOTOSYNTHESIS, urls[1]: FINANCE})
    service = SimilarityCheckService(search=FakeSearch(urls), scraper=scraper)

    result = service.check_web_similarity(PHOTOSYNTHESIS)

    assert result.score == 100.0
    assert result.sources == ["https://copied.example (100%)"]


def test_web_similarity_short_or_unsearchable_text():
    service = SimilarityCheckService(search=FakeSearch(["u"]), scraper=FakeScraper({}))
    assert service.check_web_similarity("short").score == 0.0
    assert service.check_web_similarity(PHOTOSYNTHESIS).score == 0.0
    assert SimilarityCheckService().check_web_similarity(PHOTOSYNTHESIS).score == 0.0


def test_web_similarity_scale_is_configurable():
    urls = ["https://copied.example"]
    service = SimilarityCheckService(
        config=CheckConfig(web_score_scale=2.0),
        search=FakeSearch(urls),
        scraper=FakeScraper({urls[0]: PHOTOSYNTHESIS}),
    )
    assert service.check_web_similarity(PHOTOSYNTHESIS).score == 50.0


def test_plagiarism_check_builds_and_stores_report(tmp_path):
    store = ReportStore(str(tmp_path / "reports.db"))
    tool = RecordingTool()
    service = SimilarityCheckService(code_tool=tool, report_store=store)
    article = Article(article_id="art-1", content=f"<p>{PHOTOSYNTHESIS}</p>")

    report = service.run_plagiarism_check(
        article,
        [attachment("a1", "../notes.txt", FINANCE)],
        run_by="editor-1",
        language="text",
    )

    assert tool.language == "text"
    assert tool.submissions == ["a1-notes.txt", "article_content_art-1.txt"]
    assert report.summary["max_similarity"] == 0.5
    assert report.summary["web_score"] == 0.0
    assert report.summary["web_sources"] == []
    assert isinstance(report.summary["ai_score"], int)
    assert report.summary["ai_details"]

    stored = store.get(report.report_id)
    assert stored.run_by == "editor-1"
    assert stored.summary == report.summary


def test_plagiarism_check_without_tool_or_store():
    report = SimilarityCheckService().run_plagiarism_check(
        Article(article_id="art-2", content=PHOTOSYNTHESIS)
    )
    assert report.summary["notice"] == "jplag-failed-or-skipped"
    assert report.report_id


def test_plagiarism_check_requires_material():
    with pytest.raises(ValueError):
        SimilarityCheckService().run_plagiarism_check(
            Article(article_id="empty", content="   ")
        )
