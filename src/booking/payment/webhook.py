"""Payment provider callbacks — verify, interpret and reconcile.

JazzCash and EasyPaisa post their result as a flat JSON object signed with
the merchant secret; Stripe posts an event signed in the ``Stripe-Signature``
header. Signatures are only checked when the matching secret is configured.
"""

import json
from dataclasses import dataclass

import stripe
import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from booking.exceptions import AuthorizationError
from booking.order.lifecycle import RecordPaymentFailure, RecordPaymentSettlement
from booking.order.order import PaymentMethod
from booking.payment.gateway.providers import EASYPAISA_SUCCESS_CODE, JAZZCASH_SUCCESS_CODE
from booking.payment.settings import PaymentSettings
from booking.payment.signing import SECURE_HASH_FIELD, verify_payload

logger = structlog.get_logger(__name__)

PROVIDERS = ("jazzcash", "easypaisa", "stripe")

STRIPE_COMPLETED = "checkout.session.completed"
STRIPE_FAILED = "payment_intent.payment_failed"


@dataclass(frozen=True)
class CallbackResult:
    order_id: str | None
    success: bool
    payment_method: str
    transaction_id: str | None = None
    reason: str | None = None


def _jazzcash(payload: dict, settings: PaymentSettings) -> CallbackResult:
    if settings.jazzcash_integrity_salt and not verify_payload(
        payload, settings.jazzcash_integrity_salt, payload.get(SECURE_HASH_FIELD)
    ):
        raise AuthorizationError("Invalid signature", authenticated=False)

    return CallbackResult(
        order_id=payload.get("pp_TxnRefNo"),
        success=payload.get("pp_ResponseCode") == JAZZCASH_SUCCESS_CODE,
        payment_method=PaymentMethod.JAZZCASH.value,
        transaction_id=payload.get("pp_RetreivalReferenceNo") or payload.get("pp_TxnRefNo"),
        reason=payload.get("pp_ResponseMessage"),
    )


def _easypaisa(payload: dict, settings: PaymentSettings) -> CallbackResult:
    if settings.easypaisa_hash_key and not verify_payload(
        payload, settings.easypaisa_hash_key, payload.get(SECURE_HASH_FIELD)
    ):
        raise AuthorizationError("Invalid signature", authenticated=False)

    return CallbackResult(
        order_id=payload.get("orderRefNumber"),
        success=payload.get("responseCode") == EASYPAISA_SUCCESS_CODE,
        payment_method=PaymentMethod.EASYPAISA.value,
        transaction_id=payload.get("transactionId"),
        reason=payload.get("responseDesc"),
    )


def _stripe(payload: dict, raw_body: bytes, signature: str | None, settings: PaymentSettings) -> CallbackResult:
    if settings.stripe_webhook_secret:
        try:
            stripe.Webhook.construct_event(raw_body, signature or "", settings.stripe_webhook_secret)
        except stripe.SignatureVerificationError as exc:
            logger.error("Stripe webhook: invalid signature", error=str(exc))
            raise AuthorizationError("Invalid signature", authenticated=False) from exc
    else:
        logger.warning("Stripe webhook accepted without signature verification")

    event_type = payload.get("type")
    obj = (payload.get("data") or {}).get("object") or {}
    order_id = (obj.get("metadata") or {}).get("order_id")
    if event_type == STRIPE_COMPLETED:
        return CallbackResult(order_id, True, PaymentMethod.CARD.value, transaction_id=obj.get("id"))
    if event_type == STRIPE_FAILED:
        error = (obj.get("last_payment_error") or {}).get("message")
        return CallbackResult(order_id, False, PaymentMethod.CARD.value, reason=error)
    return CallbackResult(None, False, PaymentMethod.CARD.value)


def interpret_callback(provider, raw_body: bytes, signature=None, settings=None) -> CallbackResult:
    if provider not in PROVIDERS:
        raise ValidationError({"provider": ["Unknown provider"]})
    try:
        payload = json.loads(raw_body or b"{}")
    except json.JSONDecodeError:
        raise ValidationError({"body": ["Must be valid JSON"]})
    if not isinstance(payload, dict):
        raise ValidationError({"body": ["Must be a JSON object"]})

    settings = settings or PaymentSettings.from_env()
    if provider == "jazzcash":
        return _jazzcash(payload, settings)
    if provider == "easypaisa":
        return _easypaisa(payload, settings)
    return _stripe(payload, raw_body, signature, settings)


def process_callback(provider, raw_body: bytes, signature=None, settings=None) -> CallbackResult:
    """Verify a provider callback and reconcile the order it refers to."""
    outcome = interpret_callback(provider, raw_body, signature=signature, settings=settings)
    if not outcome.order_id:
        logger.info("Payment callback ignored", provider=provider)
        return outcome

    if outcome.success:
        current_domain.process(
            RecordPaymentSettlement(
                order_id=outcome.order_id,
                transaction_id=outcome.transaction_id,
                payment_method=outcome.payment_method,
                provider=provider,
            ),
            asynchronous=False,
        )
    else:
        current_domain.process(
            RecordPaymentFailure(order_id=outcome.order_id, reason=outcome.reason, provider=provider),
            asynchronous=False,
        )

    logger.info(
        "Payment callback processed",
        provider=provider,
        order_id=outcome.order_id,
        status="paid" if outcome.success else "failed",
    )
    return outcome
