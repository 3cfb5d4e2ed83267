"""
State Machine Module for Order Status
"""
from app.state_machine.states import (
    FINAL_ORDER_STATUSES,
    ORDER_FLOW,
    ORDER_TRANSITIONS,
    ensure_transition,
    is_valid_transition,
    parse_order_status,
)

__all__ = [
    "FINAL_ORDER_STATUSES",
    "ORDER_FLOW",
    "ORDER_TRANSITIONS",
    "ensure_transition",
    "is_valid_transition",
    "parse_order_status",
]
