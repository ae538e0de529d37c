"""
HMAC signing of gateway notifications.

The signature is HMAC-SHA256 (hex) keyed with the shared salt over every
payload field except `hmac`, sorted by key and concatenated as key + value.
"""

import hashlib
import hmac
from typing import Any, Dict, Optional


def sign_payload(payload: Dict[str, Any], salt: str) -> str:
    message = "".join(
        f"{key}{'' if value is None else value}"
        for key, value in sorted(payload.items())
        if key != "hmac"
    )
    return hmac.new(salt.encode(), message.encode(), hashlib.sha256).hexdigest()


def verify_payload(payload: Dict[str, Any], salt: str, signature: Optional[str]) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(sign_payload(payload, salt), signature)
