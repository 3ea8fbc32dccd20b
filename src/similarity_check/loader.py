import json
import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .extraction import extract_text
from .models import Document


def load_jsonl(path: Path) -> List[Document]:
    documents: List[Document] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            if not line.strip():
                continue
            payload = json.loads(line)
            doc_id = str(payload.get("doc_id"))
            documents.append(
                Document(
                    doc_id=doc_id,
                    filename=str(payload.get("filename") or doc_id),
                    text=payload.get("text") or "",
                )
            )
    return documents


def load_csv(
    path: Path, text_column: str, id_column: str, filename_column: Optional[str] = None
) -> List[Document]:
    frame = pd.read_csv(path)
    documents: List[Document] = []
    for _, row in frame.iterrows():
        doc_id = str(row[id_column])
        filename = (
            str(row[filename_column])
            if filename_column and not pd.isna(row[filename_column])
            else doc_id
        )
        text = str(row[text_column]) if not pd.isna(row[text_column]) else ""
        documents.append(Document(doc_id=doc_id, filename=filename, text=text))
    return documents


def load_text_directory(
    directory: Path,
    pattern: str = "*",
    limit: Optional[int] = None,
) -> List[Document]:
    """Load every file matching ``pattern`` as a document, extracting its text.

    The file name is the document id; PDF, Word and HTML files are converted
    to plain text, anything else is read as UTF-8.
    """
    if not directory.exists() or not directory.is_dir():
        raise FileNotFoundError(f"Directory {directory} not found")

    files = sorted(
        (p for p in directory.glob(pattern) if p.is_file()), key=lambda p: p.name
    )
    documents: List[Document] = []

    for idx, file in enumerate(files, start=1):
        documents.append(
            Document(
                doc_id=file.name,
                filename=file.name,
                text=extract_text(file.name, file.read_bytes()),
            )
        )
        if idx % 100 == 0:
            logging.debug("Loaded %d files", idx)
        if limit is not None and len(documents) >= limit:
            logging.info("Reached limit of %d files", limit)
            break

    return documents
