"""Payment provider settings, read from the environment."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentSettings:
    timeout_seconds: float = 15.0
    app_url: str = "http://localhost:3000"
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    easypaisa_merchant_id: str | None = None
    easypaisa_hash_key: str | None = None
    jazzcash_merchant_id: str | None = None
    jazzcash_password: str | None = None
    jazzcash_integrity_salt: str | None = None

    @classmethod
    def from_env(cls) -> "PaymentSettings":
        return cls(
            timeout_seconds=float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "15")),
            app_url=os.getenv("APP_URL", "http://localhost:3000"),
            stripe_secret_key=os.getenv("STRIPE_SECRET_KEY") or None,
            stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET") or None,
            easypaisa_merchant_id=os.getenv("EASYPAISA_MERCHANT_ID") or None,
            easypaisa_hash_key=os.getenv("EASYPAISA_HASH_KEY") or None,
            jazzcash_merchant_id=os.getenv("JAZZCASH_MERCHANT_ID") or None,
            jazzcash_password=os.getenv("JAZZCASH_PASSWORD") or None,
            jazzcash_integrity_salt=os.getenv("JAZZCASH_INTEGRITY_SALT") or None,
        )
