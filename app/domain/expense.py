"""
Expense domain constants and the paid/skip state machine of an occurrence.

Occurrence state is two flags with one exclusivity rule:
- Pending: is_paid=False, is_skipped=False (initial)
- Paid:    is_paid=True
- Skipped: is_skipped=True, is_paid is always False
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

FREQUENCY_WEEKLY = "WEEKLY"
FREQUENCY_MONTHLY = "MONTHLY"
FREQUENCY_ANNUAL = "ANNUAL"
FREQUENCY_ONE_TIME = "ONE_TIME"

FREQUENCIES = (FREQUENCY_WEEKLY, FREQUENCY_MONTHLY, FREQUENCY_ANNUAL, FREQUENCY_ONE_TIME)


def is_recurring(frequency: str) -> bool:
    return frequency != FREQUENCY_ONE_TIME


@dataclass
class OccurrenceState:
    is_paid: bool = False
    paid_at: datetime | None = None
    is_skipped: bool = False
    skipped_at: datetime | None = None
    amount: Decimal | None = None

    @property
    def status(self) -> str:
        if self.is_skipped:
            return "SKIPPED"
        if self.is_paid:
            return "PAID"
        return "PENDING"


def toggle_paid(state: OccurrenceState, now: datetime, final_amount: Decimal | None = None) -> OccurrenceState:
    """
    Pending <-> Paid.

    Marking paid stamps paid_at, leaves Skipped and, when given, stores
    final_amount as the actual amount. Unmarking clears paid_at and the
    actual amount.
    """
    if state.is_paid:
        return OccurrenceState(
            is_paid=False,
            paid_at=None,
            is_skipped=False,
            skipped_at=None,
            amount=None,
        )
    return OccurrenceState(
        is_paid=True,
        paid_at=now,
        is_skipped=False,
        skipped_at=None,
        amount=final_amount if final_amount else state.amount,
    )


def toggle_skip(state: OccurrenceState, now: datetime) -> OccurrenceState:
    """
    Enter / leave Skipped.

    Entering Skipped drops the paid flag (amount is kept). Leaving Skipped
    does not bring the paid flag back.
    """
    if state.is_skipped:
        return OccurrenceState(
            is_paid=state.is_paid,
            paid_at=state.paid_at,
            is_skipped=False,
            skipped_at=None,
            amount=state.amount,
        )
    return OccurrenceState(
        is_paid=False,
        paid_at=None,
        is_skipped=True,
        skipped_at=now,
        amount=state.amount,
    )
