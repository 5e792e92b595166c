import re

import pytest

from src.documents.analysis import (
    analyze_document,
    extract_document_number,
    generate_certificate_id,
    infer_document_type,
)


@pytest.mark.parametrize(
    "file_name,expected",
    [
        ("Faktur_Maret.pdf", "invoice"),
        ("perjanjian-sewa.pdf", "contract"),
        ("ijazah_2023.pdf", "diploma"),
        ("Surat Keterangan.pdf", "letter"),
        ("scan0001.pdf", "document"),
    ],
)
def test_infer_document_type_from_file_name(file_name, expected):
    assert infer_document_type(file_name) == expected


def test_infer_document_type_falls_back_to_title():
    assert infer_document_type("scan0001.pdf", {"title": "Quarterly Report"}) == "report"


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Invoice No. 2024/001", "2024/001"),
        ("Surat Nomor: 12-ABC", "12-ABC"),
        ("Order #A77", "A77"),
        ("INV/123 payment", "INV/123"),
        ("Annual summary", None),
        (None, None),
    ],
)
def test_extract_document_number(title, expected):
    assert extract_document_number(title) == expected


def test_certificate_ids_are_unique_and_shaped():
    ids = {generate_certificate_id() for _ in range(50)}
    assert len(ids) == 50
    for cid in ids:
        assert re.fullmatch(r"CERT-[0-9A-Z]+-[0-9A-Z]{8}", cid)


def test_analyze_document_summary():
    analysis = analyze_document(
        "ijazah.pdf",
        {"title": "Ijazah Sarjana", "author": "Universitas Contoh", "keywords": "a, b,,c", "page_count": 2},
    )
    assert analysis["document_type"] == "diploma"
    assert analysis["qr_position"] == "bottom-center"
    assert analysis["keywords"] == ["a", "b", "c"]
    assert analysis["parties"] == [{"name": "Universitas Contoh", "role": "author"}]
    assert analysis["page_count"] == 2
    assert analysis["summary"] == "Diploma: Ijazah Sarjana"


def test_analyze_document_without_metadata_uses_file_stem():
    analysis = analyze_document("scan0001.pdf")
    assert analysis["subject"] == "scan0001"
    assert analysis["document_type"] == "document"
    assert analysis["qr_position"] == "bottom-right"
