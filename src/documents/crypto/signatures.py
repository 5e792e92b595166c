"""
Production signature verification.

One canonical signing input per record (see MessageEncoding), exactly one
(algorithm, encoding) pair per check, and fail-closed: any malformed key,
malformed signature or algorithm/key mismatch is reported as "not valid".
The brute-force probing used to reverse-engineer client formats lives in
`diagnostics.py` and is never called from here.
"""
from __future__ import annotations
import base64
import binascii
import logging
import re

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import encode_dss_signature, decode_dss_signature

from src.core.exceptions import InvalidInputError
from src.documents.crypto.algorithms import (
    CANONICAL_ENCODING,
    KeyAlgorithm,
    MessageEncoding,
    SignatureAlgorithm,
    hash_for,
    key_family,
    resolve_algorithm,
    resolve_encoding,
)
from src.documents.crypto.hashing import normalize_fingerprint
from src.documents.crypto.keys import load_private_key, load_public_key

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def decode_signature(value) -> bytes:
    """Base64 is the transport format; hex is accepted for older clients."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if not isinstance(value, str):
        raise InvalidInputError(message="Signature is required", code="INVALID_SIGNATURE")
    cleaned = _WS_RE.sub("", value)
    if not cleaned:
        raise InvalidInputError(message="Signature is required", code="INVALID_SIGNATURE")
    # hex first: an all-hex string would also decode as base64
    if _HEX_RE.match(cleaned) and len(cleaned) % 2 == 0:
        return bytes.fromhex(cleaned)
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError):
        pass
    raise InvalidInputError(message="Signature must be base64 or hex encoded", code="INVALID_SIGNATURE")


def canonical_message(fingerprint: str, encoding=CANONICAL_ENCODING) -> bytes:
    """The exact bytes a client signs for a given fingerprint."""
    fp = normalize_fingerprint(fingerprint)
    enc = resolve_encoding(encoding)
    if enc == MessageEncoding.RAW_FINGERPRINT_V1:
        return bytes.fromhex(fp)
    return fp.encode("utf-8")


def _ecdsa_der(signature: bytes, public_key: ec.EllipticCurvePublicKey) -> bytes:
    # Web Crypto produces IEEE P1363 (r || s); cryptography wants DER
    size = (public_key.curve.key_size + 7) // 8
    if len(signature) == 2 * size:
        r = int.from_bytes(signature[:size], "big")
        s = int.from_bytes(signature[size:], "big")
        return encode_dss_signature(r, s)
    return signature


def verify_with_key(public_key, signature: bytes, message: bytes, algorithm: SignatureAlgorithm) -> None:
    """
    Raise on failure (InvalidSignature, TypeError for key/algorithm mismatch,
    ValueError for unusable parameters). Shared by production and diagnostics.
    """
    hash_alg = hash_for(algorithm)
    if key_family(algorithm) == KeyAlgorithm.RSA:
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise TypeError(f"{algorithm} requires an RSA public key")
        public_key.verify(signature, message, padding.PKCS1v15(), hash_alg)
        return
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        raise TypeError(f"{algorithm} requires an EC public key")
    public_key.verify(_ecdsa_der(signature, public_key), message, ec.ECDSA(hash_alg))


def verify_signature(signature, public_key, message, algorithm) -> bool:
    """True only when `signature` is a valid signature over `message`; never raises."""
    try:
        algo = resolve_algorithm(algorithm)
        key = load_public_key(public_key) if isinstance(public_key, str) else public_key
        sig = decode_signature(signature)
        data = message.encode("utf-8") if isinstance(message, str) else bytes(message)
        verify_with_key(key, sig, data, algo)
        return True
    except InvalidSignature:
        return False
    except Exception as exc:
        logger.info("signature check rejected input: %s", exc.__class__.__name__)
        return False


def sign_message(private_key_pem, message, algorithm, *, ecdsa_encoding: str = "der") -> str:
    """Base64 signature over `message`. `ecdsa_encoding` is "der" or "p1363"."""
    algo = resolve_algorithm(algorithm)
    key = load_private_key(private_key_pem) if isinstance(private_key_pem, (str, bytes)) else private_key_pem
    data = message.encode("utf-8") if isinstance(message, str) else bytes(message)
    hash_alg = hash_for(algo)
    if key_family(algo) == KeyAlgorithm.RSA:
        if not isinstance(key, rsa.RSAPrivateKey):
            raise InvalidInputError(message=f"{algo} requires an RSA private key", code="INVALID_PRIVATE_KEY")
        sig = key.sign(data, padding.PKCS1v15(), hash_alg)
    else:
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise InvalidInputError(message=f"{algo} requires an EC private key", code="INVALID_PRIVATE_KEY")
        sig = key.sign(data, ec.ECDSA(hash_alg))
        if ecdsa_encoding == "p1363":
            size = (key.curve.key_size + 7) // 8
            r, s = decode_dss_signature(sig)
            sig = r.to_bytes(size, "big") + s.to_bytes(size, "big")
    return base64.b64encode(sig).decode("ascii")
