"""Cash on delivery: nothing to charge up front."""

import time

from booking.order.order import PaymentMethod
from booking.payment.gateway.port import PaymentGateway, PaymentResult


class CashOnDeliveryGateway(PaymentGateway):
    method = PaymentMethod.CASH.value

    def settle(self, order, amount: float, **customer) -> PaymentResult:
        return PaymentResult(
            success=True,
            transaction_id=f"COD-{int(time.time() * 1000)}",
            message="Cash on Delivery confirmed. Pay when your laundry is delivered.",
        )
