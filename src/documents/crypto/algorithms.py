from __future__ import annotations

from cryptography.hazmat.primitives import hashes
from django.db import models

from src.core.exceptions import InvalidInputError


class KeyAlgorithm(models.TextChoices):
    RSA = "RSA", "RSA"
    ECDSA = "ECDSA", "ECDSA"


class SignatureAlgorithm(models.TextChoices):
    RSA_SHA256 = "RSA-SHA256", "RSA with SHA-256 (PKCS#1 v1.5)"
    RSA_SHA1 = "RSA-SHA1", "RSA with SHA-1 (PKCS#1 v1.5)"
    RSA_MD5 = "RSA-MD5", "RSA with MD5 (PKCS#1 v1.5)"
    ECDSA_SHA256 = "ECDSA-SHA256", "ECDSA with SHA-256"
    ECDSA_SHA384 = "ECDSA-SHA384", "ECDSA with SHA-384"


class MessageEncoding(models.TextChoices):
    """Versioned signing-input formats. Every record is tagged with the one it was signed with."""

    RAW_FINGERPRINT_V1 = "raw-fingerprint-v1", "Raw fingerprint bytes"
    HEX_FINGERPRINT_V0 = "hex-fingerprint-v0", "Hex fingerprint as UTF-8 text (legacy)"


CANONICAL_ENCODING = MessageEncoding.RAW_FINGERPRINT_V1

# Names clients and older records use for the same thing
_ALIASES = {
    "RSA": SignatureAlgorithm.RSA_SHA256,
    "RS256": SignatureAlgorithm.RSA_SHA256,
    "SHA256-RSA": SignatureAlgorithm.RSA_SHA256,
    "SHA1-RSA": SignatureAlgorithm.RSA_SHA1,
    "MD5-RSA": SignatureAlgorithm.RSA_MD5,
    "ECDSA": SignatureAlgorithm.ECDSA_SHA256,
    "ES256": SignatureAlgorithm.ECDSA_SHA256,
    "ES384": SignatureAlgorithm.ECDSA_SHA384,
}

_HASHES = {
    SignatureAlgorithm.RSA_SHA256: hashes.SHA256,
    SignatureAlgorithm.RSA_SHA1: hashes.SHA1,
    SignatureAlgorithm.RSA_MD5: hashes.MD5,
    SignatureAlgorithm.ECDSA_SHA256: hashes.SHA256,
    SignatureAlgorithm.ECDSA_SHA384: hashes.SHA384,
}


def resolve_algorithm(name) -> SignatureAlgorithm:
    if isinstance(name, SignatureAlgorithm):
        return name
    key = (name or "").strip().upper()
    if key in SignatureAlgorithm.values:
        return SignatureAlgorithm(key)
    if key in _ALIASES:
        return _ALIASES[key]
    raise InvalidInputError(message=f"Unsupported signature algorithm: {name}", code="INVALID_ALGORITHM")


def resolve_encoding(name) -> MessageEncoding:
    if isinstance(name, MessageEncoding):
        return name
    if name in MessageEncoding.values:
        return MessageEncoding(name)
    raise InvalidInputError(message=f"Unsupported message encoding: {name}", code="INVALID_ENCODING")


def key_family(algorithm: SignatureAlgorithm) -> KeyAlgorithm:
    if algorithm.value.startswith("ECDSA"):
        return KeyAlgorithm.ECDSA
    return KeyAlgorithm.RSA


def hash_for(algorithm: SignatureAlgorithm) -> hashes.HashAlgorithm:
    return _HASHES[algorithm]()


def default_signature_algorithm(family) -> SignatureAlgorithm:
    """User preference (RSA / ECDSA) to the algorithm used for new signatures."""
    if (family or "").upper() == KeyAlgorithm.ECDSA:
        return SignatureAlgorithm.ECDSA_SHA256
    return SignatureAlgorithm.RSA_SHA256
