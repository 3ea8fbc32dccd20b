import io
import logging
import os
import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pandas as pd

from .models import CodeSimilaritySummary

DEFAULT_JPLAG_IMAGE = "ghcr.io/edulinq/jplag-docker:latest"
REPORT_DIR_CANDIDATES = ("out", "report", "jplag-out", "results")
MAX_REPORTED_PAIRS = 20

_SIMILARITY_HEADER_RE = re.compile("similar", re.IGNORECASE)


class CodeSimilarityTool(ABC):
    """External tool comparing a directory of submissions."""

    @abstractmethod
    def run(self, work_root: Path, language: str) -> CodeSimilaritySummary: ...


class JPlagDockerTool(CodeSimilarityTool):
    """Runs JPlag from its Docker image over ``<work_root>/submissions``."""

    def __init__(
        self,
        image: Optional[str] = None,
        threads: Optional[int] = None,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.image = image or os.environ.get("JPLAG_DOCKER_IMAGE", DEFAULT_JPLAG_IMAGE)
        self.threads = threads or int(os.environ.get("JPLAG_THREADS", "4"))
        self.runner = runner

    def command(self, work_root: Path, language: str) -> List[str]:
        return [
            "docker", "run", "--rm",
            "-v", f"{work_root}:/jplag:Z",
            self.image,
            "--mode", "RUN",
            "--csv-export",
            "--language", language,
            "-t", str(self.threads),
            "/jplag/submissions",
        ]

    def run(self, work_root: Path, language: str) -> CodeSimilaritySummary:
        (work_root / "out").mkdir(parents=True, exist_ok=True)
        args = self.command(work_root, language)
        logging.info("Running JPlag: %s", " ".join(args))
        try:
            completed = self.runner(args, capture_output=True, text=True, check=False)
        except OSError as exc:
            logging.warning("JPlag could not be started: %s", exc)
            return CodeSimilaritySummary(notice="jplag-failed-or-skipped")

        if completed.stdout:
            logging.info("[jplag] %s", completed.stdout.strip())
        if completed.stderr:
            logging.warning("[jplag-err] %s", completed.stderr.strip())
        if completed.returncode != 0:
            logging.warning("JPlag exited with code %d", completed.returncode)
            return CodeSimilaritySummary(notice="jplag-failed-or-skipped")

        report_dir = locate_report_dir(work_root)
        csv_path = report_dir / "report.csv"
        if not csv_path.exists():
            return CodeSimilaritySummary(notice="no-csv-found")
        return parse_jplag_csv(csv_path.read_text(encoding="utf-8"))


def locate_report_dir(
    work_root: Path, candidates: Sequence[str] = REPORT_DIR_CANDIDATES
) -> Path:
    for name in candidates:
        path = work_root / name
        if path.is_dir():
            return path
    return work_root


def parse_jplag_csv(text: str) -> CodeSimilaritySummary:
    if not text.strip():
        return CodeSimilaritySummary(notice="no-rows")
    frame = pd.read_csv(io.StringIO(text), dtype=str, skipinitialspace=True)
    if frame.empty:
        return CodeSimilaritySummary(notice="no-rows")

    columns = list(frame.columns)
    similarity_column = next(
        (name for name in columns if _SIMILARITY_HEADER_RE.search(str(name))),
        columns[-1],
    )
    similarities = pd.to_numeric(frame[similarity_column], errors="coerce").fillna(0.0)

    first = frame[columns[0]].fillna("").astype(str).str.strip()
    second = (
        frame[columns[1]].fillna("").astype(str).str.strip()
        if len(columns) > 1
        else pd.Series([""] * len(frame), index=frame.index)
    )
    pairs = [
        {"a": a, "b": b, "similarity": float(score)}
        for a, b, score in zip(first, second, similarities)
    ]
    return CodeSimilaritySummary(
        max_similarity=max(0.0, float(similarities.max())),
        avg_similarity=float(similarities.sum()) / max(1, len(pairs)),
        pairs=pairs[:MAX_REPORTED_PAIRS],
    )
