import json

import pytest

from similarity_check.loader import load_csv, load_jsonl, load_text_directory
from similarity_check.tfidf import compute_similarities


def test_load_text_directory(tmp_path):
    (tmp_path / "b.txt").write_text("second file", encoding="utf-8")
    (tmp_path / "a.html").write_text("<p>first file</p>", encoding="utf-8")
    (tmp_path / "sub").mkdir()

    documents = load_text_directory(tmp_path)
    assert [(d.doc_id, d.filename) for d in documents] == [
        ("a.html", "a.html"),
        ("b.txt", "b.txt"),
    ]
    assert documents[0].text == "first file"
    assert documents[1].text == "second file"


def test_load_text_directory_pattern_and_limit(tmp_path):
    for name in ("x1.txt", "x2.txt", "x3.txt", "y.md"):
        (tmp_path / name).write_text(name, encoding="utf-8")
    documents = load_text_directory(tmp_path, pattern="*.txt", limit=2)
    assert [d.doc_id for d in documents] == ["x1.txt", "x2.txt"]


def test_files_sharing_a_stem_get_distinct_ids(tmp_path):
    (tmp_path / "essay.txt").write_text("river delta sediment", encoding="utf-8")
    (tmp_path / "essay.html").write_text("<p>river delta sediment</p>", encoding="utf-8")
    (tmp_path / "other.txt").write_text("orbital launch window", encoding="utf-8")

    documents = load_text_directory(tmp_path)
    assert [d.doc_id for d in documents] == ["essay.html", "essay.txt", "other.txt"]

    pairs = compute_similarities(documents).pairs
    assert len(pairs) == 3
    assert (pairs[0].a_id, pairs[0].b_id, pairs[0].score) == ("essay.html", "essay.txt", 1.0)


def test_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_text_directory(tmp_path / "absent")


def test_load_jsonl(tmp_path):
    path = tmp_path / "docs.jsonl"
    rows = [
        {"doc_id": 1, "filename": "one.pdf", "text": "first"},
        {"doc_id": "2", "text": None},
    ]
    path.write_text("\n".join(json.dumps(r) for r in rows) + "\n\n", encoding="utf-8")
    documents = load_jsonl(path)
    assert [(d.doc_id, d.filename, d.text) for d in documents] == [
        ("1", "one.pdf", "first"),
        ("2", "2", ""),
    ]


def test_load_csv(tmp_path):
    path = tmp_path / "docs.csv"
    path.write_text("id,name,body\n7,seven.txt,hello\n8,,\n", encoding="utf-8")
    documents = load_csv(path, text_column="body", id_column="id", filename_column="name")
    assert [(d.doc_id, d.filename, d.text) for d in documents] == [
        ("7", "seven.txt", "hello"),
        ("8", "8", ""),
    ]
