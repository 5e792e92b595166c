"""
Rule based document classification used by the signing workflow and the
analyze endpoint: type from file name / PDF title, reference number from the
title, certificate id generation.
"""
import re
import secrets
import time
from pathlib import PurePath

from src.common.utils import to_base36

DEFAULT_DOCUMENT_TYPE = "document"
DEFAULT_QR_POSITION = "bottom-right"

# First matching rule wins; keywords cover English and Indonesian names
_TYPE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("invoice", ("invoice", "faktur", "tagihan")),
    ("contract", ("contract", "kontrak", "agreement", "perjanjian")),
    ("receipt", ("receipt", "kuitansi", "bukti")),
    ("certificate", ("certificate", "sertifikat")),
    ("diploma", ("diploma", "ijazah", "transcript", "transkrip")),
    ("report", ("report", "laporan")),
    ("letter", ("letter", "surat")),
    ("form", ("formulir", "form")),
)

_NUMBER_PATTERNS = (
    re.compile(r"no[.:]\s*([A-Za-z0-9\-/]+)", re.IGNORECASE),
    re.compile(r"nomor[.:]?\s*([A-Za-z0-9\-/]+)", re.IGNORECASE),
    re.compile(r"number[.:]?\s*([A-Za-z0-9\-/]+)", re.IGNORECASE),
    re.compile(r"#\s*([A-Za-z0-9\-/]+)"),
    re.compile(r"(?:^|[^A-Za-z0-9])([A-Za-z]{1,3}[-/][0-9]{1,5})"),
)

_CERT_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

# QR placement that keeps clear of the usual letterhead / signature blocks
_QR_POSITION_BY_TYPE = {
    "letter": "bottom-left",
    "certificate": "bottom-center",
    "diploma": "bottom-center",
}


def _match_type(text: str) -> str | None:
    lowered = (text or "").lower()
    for doc_type, keywords in _TYPE_RULES:
        if any(k in lowered for k in keywords):
            return doc_type
    return None


def infer_document_type(file_name: str, metadata: dict | None = None) -> str:
    """File name first, then the PDF title; "document" when neither says anything."""
    metadata = metadata or {}
    return _match_type(file_name) or _match_type(metadata.get("title", "")) or DEFAULT_DOCUMENT_TYPE


def extract_document_number(title: str | None) -> str | None:
    if not title:
        return None
    for pattern in _NUMBER_PATTERNS:
        match = pattern.search(title)
        if match and match.group(1):
            return match.group(1).strip()
    return None


def generate_certificate_id() -> str:
    """CERT-<base36 epoch ms>-<8 random base36 chars>, upper case."""
    stamp = to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_CERT_ALPHABET) for _ in range(8))
    return f"CERT-{stamp}-{random_part}".upper()


def analyze_document(file_name: str, metadata: dict | None = None) -> dict:
    metadata = metadata or {}
    title = metadata.get("title") or ""
    subject = title or metadata.get("subject") or PurePath(file_name or "").stem
    doc_type = infer_document_type(file_name, metadata)
    keywords = [k.strip() for k in (metadata.get("keywords") or "").split(",") if k.strip()]

    parties = []
    author = (metadata.get("author") or "").strip()
    if len(author) > 1:
        parties.append({"name": author, "role": "author"})

    return {
        "document_type": doc_type,
        "qr_position": _QR_POSITION_BY_TYPE.get(doc_type, DEFAULT_QR_POSITION),
        "subject": subject,
        "document_number": extract_document_number(title or file_name),
        "keywords": keywords[:10],
        "parties": parties,
        "page_count": metadata.get("page_count", 0),
        "summary": f"{doc_type.capitalize()}: {subject}" if subject else doc_type.capitalize(),
    }
