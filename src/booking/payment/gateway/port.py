"""Payment gateway port (abstract interface).

Every payment method settles through the same contract, so the settlement
handler never branches on the method beyond picking the gateway.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentResult:
    """Result of a settlement attempt.

    ``redirect_url`` set means the customer must finish on the provider's
    page and the outcome will arrive by webhook.
    """

    success: bool
    transaction_id: str | None = None
    redirect_url: str | None = None
    message: str | None = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "transaction_id": self.transaction_id,
            "redirect_url": self.redirect_url,
            "message": self.message,
        }


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    method: str

    @abstractmethod
    def settle(self, order, amount: float, **customer) -> PaymentResult:
        """Charge ``amount`` for ``order``.

        Raises:
            DownstreamError: the provider could not be reached or errored.
        """
        ...
