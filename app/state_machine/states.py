"""
Order Status Transitions

Forward-only chain: pending -> confirmed -> processing -> shipped -> delivered.
Admins may skip ahead along the chain. Cancellation is possible only while the
order is still pending. delivered and cancelled are final.
"""
from app.core.exceptions import InvalidStatusError, InvalidTransitionError
from app.db.models.order import OrderStatus


ORDER_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]

FINAL_ORDER_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def _build_transitions() -> dict[OrderStatus, list[OrderStatus]]:
    transitions: dict[OrderStatus, list[OrderStatus]] = {}
    for index, status in enumerate(ORDER_FLOW):
        transitions[status] = ORDER_FLOW[index + 1:]
    transitions[OrderStatus.PENDING] = transitions[OrderStatus.PENDING] + [OrderStatus.CANCELLED]
    transitions[OrderStatus.CANCELLED] = []
    return transitions


# Allowed targets per status
ORDER_TRANSITIONS = _build_transitions()


def parse_order_status(value: str | OrderStatus) -> OrderStatus:
    """Map a status string onto OrderStatus, case-insensitive"""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidStatusError(str(value), [s.value for s in OrderStatus])


def is_valid_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_TRANSITIONS.get(current, [])


def ensure_transition(order_id: int, current: OrderStatus, target: OrderStatus) -> None:
    """Raise InvalidTransitionError unless current -> target is allowed"""
    if not is_valid_transition(current, target):
        raise InvalidTransitionError("Order", order_id, current.value, target.value)
