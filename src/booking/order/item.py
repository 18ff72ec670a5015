"""OrderItem aggregate — one priced line of an order, written once at placement."""

from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from booking.domain import booking


@booking.aggregate
class OrderItem:
    order_id = Identifier(required=True)
    service_id = Identifier(required=True)
    service_name = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    weight_kg = Float(min_value=0.5)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)

    @classmethod
    def from_line(cls, order_id, line):
        return cls(
            order_id=str(order_id),
            service_id=line.service_id,
            service_name=line.service_name,
            quantity=line.quantity,
            weight_kg=line.weight_kg,
            unit_price=line.unit_price,
            total_price=line.total_price,
        )


def items_for(order_id) -> list[OrderItem]:
    repo = current_domain.repository_for(OrderItem)
    return repo._dao.query.filter(order_id=str(order_id)).all().items
