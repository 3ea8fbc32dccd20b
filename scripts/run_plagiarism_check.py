#!/usr/bin/env python3
import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from similarity_check.code_similarity import JPlagDockerTool
from similarity_check.models import Article, Attachment
from similarity_check.reports import ReportStore
from similarity_check.service import SimilarityCheckService


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the AI-text heuristic and JPlag over an article"
    )
    parser.add_argument("article_id", help="Identifier recorded on the report")
    parser.add_argument(
        "--content-file", type=Path, help="File holding the article body (HTML or text)"
    )
    parser.add_argument("--title", help="Article title")
    parser.add_argument(
        "--attachments", type=Path, help="Directory of attachment files"
    )
    parser.add_argument(
        "--language", default="python3", help="JPlag language for the submissions"
    )
    parser.add_argument(
        "--jplag", action="store_true", help="Run JPlag through Docker"
    )
    parser.add_argument(
        "--database",
        default=os.environ.get("SIMILARITY_REPORT_DB", "reports.db"),
        help="SQLite database the report is saved to",
    )
    parser.add_argument("--run-by", help="User recorded as having run the check")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    return parser.parse_args()


def read_attachments(directory: Path) -> List[Attachment]:
    if not directory.is_dir():
        raise SystemExit(f"Attachment directory {directory} not found")
    return [
        Attachment(attachment_id=path.name, filename=path.name, data=path.read_bytes())
        for path in sorted(directory.iterdir(), key=lambda p: p.name)
        if path.is_file()
    ]


def main() -> None:
    args = parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s %(message)s",
    )

    content = (
        args.content_file.read_text(encoding="utf-8") if args.content_file else None
    )
    attachments = read_attachments(args.attachments) if args.attachments else []
    article = Article(article_id=args.article_id, title=args.title, content=content)

    service = SimilarityCheckService(
        code_tool=JPlagDockerTool() if args.jplag else None,
        report_store=ReportStore(args.database),
    )
    try:
        report = service.run_plagiarism_check(
            article, attachments, run_by=args.run_by, language=args.language
        )
    except ValueError as exc:
        raise SystemExit(str(exc))

    print(f"Report {report.report_id} saved to {args.database}")
    print(json.dumps(report.summary, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
