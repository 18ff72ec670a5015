"""Configurable fake payment gateway for development and testing.

Simulates a provider without any external calls. It can be told to approve,
decline, hand back a redirect URL or fail outright.
"""

from uuid import uuid4

from booking.exceptions import DownstreamError
from booking.payment.gateway.port import PaymentGateway, PaymentResult


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, method: str = "card") -> None:
        self.method = method
        self.outcome: str = "approve"
        self.message: str = "Payment declined"
        self.calls: list[dict] = []

    def configure(self, outcome: str, message: str = "Payment declined") -> None:
        """Set the next outcome: ``approve``, ``decline``, ``redirect`` or ``error``."""
        self.outcome = outcome
        self.message = message

    def settle(self, order, amount: float, **customer) -> PaymentResult:
        self.calls.append({"order_id": str(order.id), "amount": amount, **customer})

        if self.outcome == "error":
            raise DownstreamError(f"{self.method} provider unavailable", order_id=str(order.id))
        if self.outcome == "decline":
            return PaymentResult(success=False, message=self.message)
        if self.outcome == "redirect":
            return PaymentResult(
                success=True,
                transaction_id=f"fake_session_{uuid4().hex[:12]}",
                redirect_url=f"https://pay.example.test/session/{order.id}",
                message="Continue to the payment page.",
            )
        return PaymentResult(success=True, transaction_id=f"fake_txn_{uuid4().hex[:12]}", message="Payment approved")
