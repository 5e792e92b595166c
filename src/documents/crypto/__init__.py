from src.documents.crypto.hashing import compute_fingerprint, normalize_fingerprint
from src.documents.crypto.keys import generate_key_pair, load_public_key, normalize_public_key
from src.documents.crypto.signatures import canonical_message, sign_message, verify_signature

__all__ = [
    "canonical_message",
    "compute_fingerprint",
    "generate_key_pair",
    "load_public_key",
    "normalize_fingerprint",
    "normalize_public_key",
    "sign_message",
    "verify_signature",
]
