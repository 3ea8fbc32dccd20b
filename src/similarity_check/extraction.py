"""Binary attachment to plain-text conversion."""

import io
import logging
from typing import Callable, Dict, Iterable, List

from .models import Attachment, Document


def _extension(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def _extract_pdf(data: bytes) -> str:
    from pypdf import PdfReader

    reader = PdfReader(io.BytesIO(data))
    pages = []
    for page in reader.pages:
        text = page.extract_text()
        if text:
            pages.append(text)
    return "\n\n".join(pages)


def _extract_docx(data: bytes) -> str:
    from docx import Document as DocxDocument

    doc = DocxDocument(io.BytesIO(data))
    return "\n\n".join(p.text for p in doc.paragraphs if p.text.strip())


def _extract_html(data: bytes) -> str:
    from bs4 import BeautifulSoup

    soup = BeautifulSoup(_decode(data), "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup.get_text(separator="\n", strip=True)


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


_EXTRACTORS: Dict[str, Callable[[bytes], str]] = {
    "pdf": _extract_pdf,
    "docx": _extract_docx,
    "doc": _extract_docx,
    "html": _extract_html,
    "htm": _extract_html,
}


def extract_text(filename: str, data: bytes) -> str:
    """Return the plain text of an attachment.

    PDF, Word and HTML files go through their parsers; everything else is
    decoded as UTF-8. A file that cannot be parsed yields an empty string so
    that it takes part in scoring as an empty document.
    """
    extractor = _EXTRACTORS.get(_extension(filename), _decode)
    try:
        return extractor(data) or ""
    except Exception as exc:
        logging.warning("Text extraction failed for %s: %s", filename, exc)
        return ""


def attachments_to_documents(attachments: Iterable[Attachment]) -> List[Document]:
    documents: List[Document] = []
    for attachment in attachments:
        filename = attachment.filename or attachment.attachment_id
        documents.append(
            Document(
                doc_id=attachment.attachment_id,
                filename=filename,
                text=extract_text(filename, attachment.data),
            )
        )
    return documents
