"""HMAC signatures for Pakistani wallet providers.

Both JazzCash and EasyPaisa sign a payload by sorting its keys, joining the
values with ``&`` and taking an upper-case hex HMAC-SHA256 with the merchant
secret. The hash field itself and empty values are left out.
"""

import hashlib
import hmac

SECURE_HASH_FIELD = "pp_SecureHash"


def sign_payload(payload: dict, secret: str) -> str:
    message = "&".join(
        str(payload[key])
        for key in sorted(payload)
        if key != SECURE_HASH_FIELD and payload[key] not in (None, "")
    )
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest().upper()


def verify_payload(payload: dict, secret: str, signature: str | None) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(sign_payload(payload, secret), signature.upper())
