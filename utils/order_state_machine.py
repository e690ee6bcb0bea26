"""
Order State Machine for validating order status transitions and maintaining consistency.

This module implements a finite state machine to ensure valid order status transitions,
tells the caller which inventory effect a transition carries and provides audit logging
for all status changes.
"""

import logging
from enum import Enum
from typing import Dict, List, Set

from enums.order_status import OrderStatus
from enums.transition_actor import TransitionActor
from exceptions.order import InvalidOrderStateException

logger = logging.getLogger(__name__)


class InventoryEffect(str, Enum):
    COMMIT = "COMMIT"       # reserved -> deducted from on-hand
    RELEASE = "RELEASE"     # reservation given back
    RESTOCK = "RESTOCK"     # committed quantity returned to on-hand
    COLLECT_COD = "COLLECT_COD"  # cash collected on delivery
    NONE = "NONE"


class OrderStatusTransition:
    """Represents a valid status transition with metadata"""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus,
                 actors: frozenset[TransitionActor], effect: InventoryEffect = InventoryEffect.NONE,
                 description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.actors = actors
        self.effect = effect
        self.description = description

    @property
    def requires_admin(self) -> bool:
        return self.actors == frozenset({TransitionActor.ADMIN})

    def __repr__(self):
        admin_flag = " (Admin)" if self.requires_admin else ""
        return f"{self.from_status.value} -> {self.to_status.value}{admin_flag}"


class OrderStateMachine:
    """
    Finite state machine for order status transitions.

    Valid status transitions:
    - PENDING_PAYMENT -> PROCESSING (payment confirmed, or admin confirms a COD order)
    - PENDING_PAYMENT -> CANCELLED (customer, admin or expiry job)
    - PROCESSING -> SHIPPED (admin only)
    - PROCESSING -> CANCELLED (admin only, committed stock is returned)
    - SHIPPED -> DELIVERED (admin only)

    DELIVERED and CANCELLED are final. Staying in the same status is a no-op.
    """

    VALID_TRANSITIONS: List[OrderStatusTransition] = [
        OrderStatusTransition(
            OrderStatus.PENDING_PAYMENT,
            OrderStatus.PROCESSING,
            actors=frozenset({TransitionActor.SYSTEM, TransitionActor.ADMIN}),
            effect=InventoryEffect.COMMIT,
            description="Payment received or cash-on-delivery order confirmed"
        ),
        OrderStatusTransition(
            OrderStatus.PENDING_PAYMENT,
            OrderStatus.CANCELLED,
            actors=frozenset({TransitionActor.CUSTOMER, TransitionActor.ADMIN, TransitionActor.SYSTEM}),
            effect=InventoryEffect.RELEASE,
            description="Unpaid order cancelled"
        ),
        OrderStatusTransition(
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            actors=frozenset({TransitionActor.ADMIN}),
            description="Order shipped by admin"
        ),
        OrderStatusTransition(
            OrderStatus.PROCESSING,
            OrderStatus.CANCELLED,
            actors=frozenset({TransitionActor.ADMIN}),
            effect=InventoryEffect.RESTOCK,
            description="Confirmed order cancelled by admin"
        ),
        OrderStatusTransition(
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            actors=frozenset({TransitionActor.ADMIN}),
            effect=InventoryEffect.COLLECT_COD,
            description="Order delivered"
        ),
    ]

    _transitions: Dict[tuple, OrderStatusTransition] = {}
    _transition_map: Dict[OrderStatus, Set[OrderStatus]] = {}

    @classmethod
    def _build_transition_map(cls):
        if cls._transitions:
            return

        for transition in cls.VALID_TRANSITIONS:
            cls._transitions[(transition.from_status, transition.to_status)] = transition
            cls._transition_map.setdefault(transition.from_status, set()).add(transition.to_status)

    @classmethod
    def get_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> OrderStatusTransition | None:
        cls._build_transition_map()
        return cls._transitions.get((from_status, to_status))

    @classmethod
    def is_valid_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """
        Check if a status transition is valid according to the state machine.

        Returns:
            True if transition is valid (or a same-status no-op), False otherwise
        """
        if from_status == to_status:
            return True
        return cls.get_transition(from_status, to_status) is not None

    @classmethod
    def requires_admin(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        transition = cls.get_transition(from_status, to_status)
        return transition is not None and transition.requires_admin

    @classmethod
    def get_valid_transitions(cls, from_status: OrderStatus) -> List[OrderStatus]:
        cls._build_transition_map()
        return sorted(cls._transition_map.get(from_status, set()), key=lambda s: s.value)

    @classmethod
    def is_final_status(cls, status: OrderStatus) -> bool:
        return not cls.get_valid_transitions(status)

    @classmethod
    def validate_and_log_transition(cls, order_id: str, from_status: OrderStatus, to_status: OrderStatus,
                                    actor: TransitionActor, actor_id: str | None = None) -> OrderStatusTransition | None:
        """
        Validate a status transition for the given actor and write an audit log line.

        Returns:
            The transition to apply, or None for a same-status no-op

        Raises:
            InvalidOrderStateException: transition not allowed (for this actor)
        """
        if from_status == to_status:
            logger.info(f"ORDER_STATUS_TRANSITION: Order {order_id} already {to_status.value}, nothing to do")
            return None

        transition = cls.get_transition(from_status, to_status)
        if transition is None or actor not in transition.actors:
            logger.error(
                f"Invalid status transition for order {order_id}: {from_status.value} -> {to_status.value} "
                f"by {actor.value}"
            )
            raise InvalidOrderStateException(order_id, from_status.value, to_status.value)

        performer = f"{actor.value.lower()} {actor_id}" if actor_id else actor.value.lower()
        logger.info(
            f"ORDER_STATUS_TRANSITION: Order {order_id} {from_status.value} -> {to_status.value} "
            f"by {performer}: {transition.description}"
        )
        return transition
