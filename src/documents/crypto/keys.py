from __future__ import annotations
import hashlib
import re
import textwrap
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from src.core.exceptions import InvalidInputError
from src.documents.crypto.algorithms import KeyAlgorithm

PEM_HEADER = "-----BEGIN PUBLIC KEY-----"
PEM_FOOTER = "-----END PUBLIC KEY-----"

_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class KeyPair:
    public_key: str
    private_key: str
    algorithm: str


def normalize_public_key(text: str) -> str:
    """
    Return a PEM document. Raw base64 SPKI bodies (no armor) are wrapped in
    BEGIN/END PUBLIC KEY markers with 64-char lines.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputError(message="Public key is required", code="INVALID_PUBLIC_KEY")
    stripped = text.strip()
    if "-----BEGIN" in stripped:
        # keys pasted through form fields sometimes carry literal "\n"
        return stripped.replace("\\n", "\n") + "\n"
    body = _WS_RE.sub("", stripped)
    return f"{PEM_HEADER}\n" + "\n".join(textwrap.wrap(body, 64)) + f"\n{PEM_FOOTER}\n"


def load_public_key(text: str):
    pem = normalize_public_key(text)
    try:
        key = serialization.load_pem_public_key(pem.encode("ascii"))
    except (ValueError, TypeError, UnicodeEncodeError) as e:
        raise InvalidInputError(message="Public key could not be parsed", code="INVALID_PUBLIC_KEY") from e
    if not isinstance(key, (rsa.RSAPublicKey, ec.EllipticCurvePublicKey)):
        raise InvalidInputError(message="Only RSA and ECDSA public keys are supported", code="INVALID_PUBLIC_KEY")
    return key


def key_algorithm_of(public_key) -> KeyAlgorithm:
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        return KeyAlgorithm.ECDSA
    return KeyAlgorithm.RSA


def load_private_key(pem: str | bytes, password: str | None = None):
    data = pem.encode("ascii") if isinstance(pem, str) else pem
    try:
        return serialization.load_pem_private_key(data, password.encode() if password else None)
    except (ValueError, TypeError) as e:
        raise InvalidInputError(message="Private key could not be parsed", code="INVALID_PRIVATE_KEY") from e


def public_key_fingerprint(pem: str) -> str:
    """Short SHA-256 id of a public key, for logs and audit entries."""
    return hashlib.sha256(normalize_public_key(pem).encode("ascii")).hexdigest()[:8]


def generate_key_pair(algorithm: str = KeyAlgorithm.RSA) -> KeyPair:
    """RSA 2048 (e=65537) or ECDSA P-256; SPKI public / PKCS#8 private, both PEM."""
    algo = (algorithm or "").upper()
    if algo == KeyAlgorithm.RSA:
        private = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    elif algo == KeyAlgorithm.ECDSA:
        private = ec.generate_private_key(ec.SECP256R1())
    else:
        raise InvalidInputError(
            message=f"Unsupported algorithm: {algorithm}. Choose either 'RSA' or 'ECDSA'",
            code="INVALID_ALGORITHM",
        )
    private_pem = private.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = private.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
    return KeyPair(public_key=public_pem, private_key=private_pem, algorithm=algo)
