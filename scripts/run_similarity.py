import argparse
import csv
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from similarity_check.loader import load_text_directory
from similarity_check.models import Document, ScorerConfig, SimilarityPair
from similarity_check.tfidf import TfidfScorer, filter_pairs


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rank document pairs in a directory by TF-IDF similarity"
    )
    parser.add_argument("dataset", type=Path, help="Directory of documents to compare")
    parser.add_argument("output", type=Path, help="Where to write the pairs CSV")
    parser.add_argument(
        "--pattern", default="*", help="Glob selecting files inside the directory"
    )
    parser.add_argument(
        "--limit", type=int, help="Limit number of documents loaded (for testing)"
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=float(os.environ.get("SIMILARITY_THRESHOLD", "0.0")),
        help="Minimum similarity score written to the output",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=None,
        help="Maximum number of pairs written to the output",
    )
    parser.add_argument(
        "--min-token-length",
        type=int,
        default=2,
        help="Tokens shorter than this are ignored",
    )
    parser.add_argument(
        "--max-terms-per-document",
        type=int,
        default=None,
        help="Only each document's top-weighted terms enter the vocabulary",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    return parser.parse_args()


def write_pairs(
    output_path: Path,
    documents: List[Document],
    pairs: List[SimilarityPair],
) -> None:
    filenames: Dict[str, str] = {doc.doc_id: doc.filename for doc in documents}
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(["a_id", "a_filename", "b_id", "b_filename", "score"])
        for pair in pairs:
            writer.writerow(
                [
                    pair.a_id,
                    filenames.get(pair.a_id, ""),
                    pair.b_id,
                    filenames.get(pair.b_id, ""),
                    f"{pair.score:.4f}",
                ]
            )


def main() -> None:
    args = parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s %(message)s",
    )

    logging.info("Loading documents from %s", args.dataset)
    documents = load_text_directory(args.dataset, pattern=args.pattern, limit=args.limit)
    if not documents:
        raise SystemExit("No documents loaded from the dataset directory")

    config = ScorerConfig(
        min_token_length=args.min_token_length,
        max_terms_per_document=args.max_terms_per_document,
    )
    logging.info("Loaded %d documents. Scoring...", len(documents))
    result = TfidfScorer(config).compute_similarities(documents)
    pairs = filter_pairs(result.pairs, threshold=args.threshold, top_n=args.top)

    logging.info("Writing %d pairs to %s", len(pairs), args.output)
    write_pairs(args.output, result.docs, pairs)
    logging.info("Done.")


if __name__ == "__main__":
    main()
