"""Online payment provider adapters: card (Stripe Checkout), EasyPaisa, JazzCash.

Without merchant credentials each adapter runs in sandbox mode and approves
the payment immediately, which is what local development and the demo
storefront rely on. With credentials the card adapter goes through the
stripe-python SDK and the wallets call their provider over HTTP using
``requests``, all with the configured timeout. Network failures, timeouts and
provider 5xx responses become ``DownstreamError``; nothing is retried.
"""

import time
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import requests
import stripe
import structlog
from protean.exceptions import ValidationError

from booking.exceptions import DownstreamError
from booking.order.order import PaymentMethod
from booking.payment.gateway.port import PaymentGateway, PaymentResult
from booking.payment.settings import PaymentSettings
from booking.payment.signing import SECURE_HASH_FIELD, sign_payload

logger = structlog.get_logger(__name__)

KARACHI = ZoneInfo("Asia/Karachi")

EASYPAISA_INITIATE_URL = "https://easypay.easypaisa.com.pk/easypay-service/rest/v4/initiate-ma-transaction"
JAZZCASH_TRANSACTION_URL = "https://sandbox.jazzcash.com.pk/ApplicationAPI/API/Payment/DoTransaction"

JAZZCASH_SUCCESS_CODE = "000"
EASYPAISA_SUCCESS_CODE = "0000"


def _millis() -> int:
    return int(time.time() * 1000)


class ProviderGateway(PaymentGateway):
    """Shared sandbox switch and HTTP error handling."""

    prefix: str
    sandbox_message: str

    def __init__(self, settings: PaymentSettings | None = None, http=None):
        self.settings = settings or PaymentSettings.from_env()
        self.http = http or requests

    def is_configured(self) -> bool:
        raise NotImplementedError

    def settle(self, order, amount: float, **customer) -> PaymentResult:
        if not self.is_configured():
            logger.info("Sandbox payment approved", method=self.method, order_id=str(order.id), amount=amount)
            return PaymentResult(
                success=True,
                transaction_id=f"{self.prefix}-{_millis()}",
                message=self.sandbox_message,
            )

        try:
            return self.charge(order, amount, **customer)
        except requests.Timeout as exc:
            logger.error("Payment provider timed out", method=self.method, order_id=str(order.id))
            raise DownstreamError(f"{self.method} payment provider timed out", order_id=str(order.id)) from exc
        except requests.RequestException as exc:
            logger.error("Payment provider error", method=self.method, order_id=str(order.id), error=str(exc))
            raise DownstreamError(f"{self.method} payment provider unavailable", order_id=str(order.id)) from exc

    def charge(self, order, amount: float, **customer) -> PaymentResult:
        raise NotImplementedError

    def _post_json(self, url, payload, **kwargs) -> dict:
        response = self.http.post(url, json=payload, timeout=self.settings.timeout_seconds, **kwargs)
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _customer_phone(order, customer) -> str:
        phone = customer.get("customer_phone") or order.guest_phone
        if not phone:
            raise ValidationError({"customer_phone": ["Mobile account number is required"]})
        return phone


class CardGateway(ProviderGateway):
    method = PaymentMethod.CARD.value
    prefix = "CARD"
    sandbox_message = "Card payment processed successfully."

    def is_configured(self) -> bool:
        return bool(self.settings.stripe_secret_key)

    def charge(self, order, amount: float, **customer) -> PaymentResult:
        stripe.api_key = self.settings.stripe_secret_key
        stripe.default_http_client = stripe.RequestsClient(timeout=self.settings.timeout_seconds)

        base_url = self.settings.app_url.rstrip("/")
        session_data = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "quantity": 1,
                    "price_data": {
                        "currency": "pkr",
                        "unit_amount": int(round(amount * 100)),
                        "product_data": {"name": f"Washerman Order {order.order_number}"},
                    },
                }
            ],
            "success_url": f"{base_url}/dashboard/orders/{order.id}?payment=success",
            "cancel_url": f"{base_url}/dashboard/orders/{order.id}?payment=cancelled",
            "metadata": {"order_id": str(order.id)},
        }
        if customer.get("customer_email"):
            session_data["customer_email"] = customer["customer_email"]

        try:
            session = stripe.checkout.Session.create(**session_data)
        except stripe.StripeError as exc:
            logger.error("Stripe checkout failed", order_id=str(order.id), error=str(exc))
            raise DownstreamError("card payment provider unavailable", order_id=str(order.id)) from exc

        return PaymentResult(
            success=True,
            transaction_id=session.id,
            redirect_url=session.url,
            message="Continue to secure card payment.",
        )


class EasyPaisaGateway(ProviderGateway):
    method = PaymentMethod.EASYPAISA.value
    prefix = "EP"
    sandbox_message = "EasyPaisa payment initiated. Please confirm on your phone."

    def is_configured(self) -> bool:
        return bool(self.settings.easypaisa_merchant_id)

    def charge(self, order, amount: float, **customer) -> PaymentResult:
        payload = {
            "orderId": str(order.id),
            "storeId": self.settings.easypaisa_merchant_id,
            "transactionAmount": f"{amount:.2f}",
            "transactionType": "MA",
            "mobileAccountNo": self._customer_phone(order, customer),
            "emailAddress": customer.get("customer_email") or "",
        }
        if self.settings.easypaisa_hash_key:
            payload[SECURE_HASH_FIELD] = sign_payload(payload, self.settings.easypaisa_hash_key)

        body = self._post_json(EASYPAISA_INITIATE_URL, payload)
        if body.get("responseCode") == EASYPAISA_SUCCESS_CODE:
            return PaymentResult(
                success=True,
                transaction_id=body.get("transactionId") or f"{self.prefix}-{_millis()}",
                message="Payment request sent to your EasyPaisa account.",
            )
        return PaymentResult(success=False, message=body.get("responseDesc") or "EasyPaisa payment declined")


class JazzCashGateway(ProviderGateway):
    method = PaymentMethod.JAZZCASH.value
    prefix = "JC"
    sandbox_message = "JazzCash payment initiated. Please confirm on your phone."

    def is_configured(self) -> bool:
        return bool(self.settings.jazzcash_merchant_id)

    def charge(self, order, amount: float, **customer) -> PaymentResult:
        now = datetime.now(KARACHI)
        payload = {
            "pp_Version": "1.1",
            "pp_TxnType": "MWALLET",
            "pp_Language": "EN",
            "pp_MerchantID": self.settings.jazzcash_merchant_id,
            "pp_Password": self.settings.jazzcash_password or "",
            "pp_TxnRefNo": str(order.id),
            "pp_Amount": str(int(round(amount * 100))),  # paisa
            "pp_TxnCurrency": "PKR",
            "pp_TxnDateTime": now.strftime("%Y%m%d%H%M%S"),
            "pp_TxnExpiryDateTime": (now + timedelta(days=1)).strftime("%Y%m%d%H%M%S"),
            "pp_BillReference": order.order_number,
            "pp_Description": f"Washerman Order {order.order_number}",
            "pp_MobileNumber": self._customer_phone(order, customer),
        }
        if self.settings.jazzcash_integrity_salt:
            payload[SECURE_HASH_FIELD] = sign_payload(payload, self.settings.jazzcash_integrity_salt)

        body = self._post_json(JAZZCASH_TRANSACTION_URL, payload)
        if body.get("pp_ResponseCode") == JAZZCASH_SUCCESS_CODE:
            return PaymentResult(
                success=True,
                transaction_id=body.get("pp_RetreivalReferenceNo") or f"{self.prefix}-{_millis()}",
                message="Payment request sent to your JazzCash account.",
            )
        return PaymentResult(success=False, message=body.get("pp_ResponseMessage") or "JazzCash payment declined")
