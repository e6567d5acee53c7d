"""
events.py - Loan notifications

Events are just data, subscribers are just functions:
1. LoanEvent: Immutable record of something that happened to a loan
2. EventChannel: Fire-and-forget publish/subscribe with an in-memory history

The pool publishes an event only after its operation has committed, so every
event in the history describes a state change that actually happened.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Deque, List, Optional

from .core import Money
from .logging_config import get_logger


logger = get_logger(__name__)


class EventType(str, Enum):
    """Notifications emitted for off-system observers."""
    LOAN_PROPOSAL = "LoanProposal"
    LOAN_GRANTED = "LoanGranted"
    LOAN_REJECTED = "LoanRejected"
    LOAN_PAID_BACK = "LoanPaidBack"
    REMINDER_TO_PAY = "ReminderToPay"


@dataclass(frozen=True, slots=True)
class LoanEvent:
    """
    Immutable loan notification.

    Attributes:
        event_type: What happened
        borrower: Participant concerned
        timestamp: Ledger time of the operation
        amount: Proposed, granted or repaid amount (amount due for reminders)
        end_time: Repayment deadline, for grants and reminders
    """
    event_type: EventType
    borrower: str
    timestamp: datetime
    amount: Money = 0
    end_time: Optional[datetime] = None

    def __repr__(self) -> str:
        return f"{self.event_type.value}({self.borrower}, {self.amount})"


# Subscriber type: (event) -> None
EventSubscriber = Callable[[LoanEvent], None]


class EventChannel:
    """
    Fire-and-forget notification channel.

    Delivery is best effort: a subscriber that raises is logged and skipped,
    and the remaining subscribers still receive the event.

    The history keeps every event unless max_history is given, in which case
    only the most recent max_history events are retained.
    """

    def __init__(self, max_history: Optional[int] = None):
        if max_history is not None and max_history < 1:
            raise ValueError(f"max_history must be positive, got {max_history}")
        self.history: Deque[LoanEvent] = deque(maxlen=max_history)
        self._subscribers: List[EventSubscriber] = []

    def subscribe(self, subscriber: EventSubscriber) -> Callable[[], None]:
        """
        Register a subscriber.

        Returns:
            A function that removes the subscriber again.
        """
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, event: LoanEvent) -> None:
        self.history.append(event)
        logger.debug("Publishing %r", event)
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed on %s for borrower=%s",
                    subscriber, event.event_type.value, event.borrower,
                )

    def of_type(self, event_type: EventType) -> List[LoanEvent]:
        """History filtered to one event type."""
        return [e for e in self.history if e.event_type is event_type]

    def clear(self) -> None:
        self.history.clear()
