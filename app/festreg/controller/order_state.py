from dataclasses import dataclass
from typing import List

from festreg.exceptions import ConflictError
from festreg.models.order_model import OrderStatus


class TransitionError(ConflictError):
    def __init__(self, from_state: str, action: str, reason: str = None):
        self.from_state = from_state
        self.action = action
        super().__init__(reason or f"Cannot {action} an order in state {from_state}")


@dataclass(frozen=True)
class Transition:
    from_state: OrderStatus
    to_state: OrderStatus
    action: str


TRANSITIONS: List[Transition] = [
    Transition(OrderStatus.PENDING, OrderStatus.VERIFIED, "verify"),
    Transition(OrderStatus.REJECTED, OrderStatus.VERIFIED, "verify"),
    Transition(OrderStatus.PENDING, OrderStatus.REJECTED, "reject"),
    Transition(OrderStatus.REJECTED, OrderStatus.REJECTED, "reject"),
]

# Messages for the refusals admins actually run into
REFUSALS = {
    (OrderStatus.VERIFIED, "verify"): "Order is already verified",
    (OrderStatus.VERIFIED, "reject"): "Cannot reject a verified order",
}


def next_status(status: str, action: str) -> OrderStatus:
    """Return the state ``action`` moves an order in ``status`` to, or raise TransitionError."""
    current = OrderStatus(status)
    for t in TRANSITIONS:
        if t.from_state == current and t.action == action:
            return t.to_state
    raise TransitionError(current.value, action, REFUSALS.get((current, action)))
