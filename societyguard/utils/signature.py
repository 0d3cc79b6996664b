# societyguard/utils/signature.py
"""
Optional HMAC-SHA256 webhook signature check.
The vendor signs the raw request body; the header carries "sha256=<hex>"
(a bare hex digest is accepted too).
"""

import hashlib
import hmac
from typing import Optional

SIGNATURE_HEADER = "X-Webhook-Signature"


def sign_body(raw_body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_signature(raw_body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """True when no secret is configured, or when the signature matches."""
    if not secret:
        return True
    if not signature:
        return False
    provided = signature.strip()
    if not provided.startswith("sha256="):
        provided = f"sha256={provided}"
    return hmac.compare_digest(provided.lower(), sign_body(raw_body, secret))
