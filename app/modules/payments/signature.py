import hashlib
import hmac
from typing import Optional


def compute_signature(secret: str, raw_body: bytes) -> str:
    """Hex HMAC-SHA256 of the raw request body, as Razorpay signs webhooks"""
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, raw_body: bytes, signature: Optional[str]) -> bool:
    if not signature:
        return False
    expected = compute_signature(secret, raw_body)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
