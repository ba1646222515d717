"""
Goal domain - progress arithmetic and status rules
"""
from decimal import Decimal

GOAL_TYPES = ("SAVINGS", "DEBT_PAYMENT", "EXPENSE_REDUCTION", "CUSTOM")

GOAL_STATUS_ACTIVE = "ACTIVE"
GOAL_STATUS_COMPLETED = "COMPLETED"
GOAL_STATUS_CANCELLED = "CANCELLED"
GOAL_STATUS_PAUSED = "PAUSED"

GOAL_STATUSES = (GOAL_STATUS_ACTIVE, GOAL_STATUS_COMPLETED, GOAL_STATUS_CANCELLED, GOAL_STATUS_PAUSED)

AMOUNT_OPERATIONS = ("add", "subtract", "set")


def goal_progress(current_amount: float, target_amount: float) -> float:
    """
    Прогресс цели в процентах: min(current / target * 100, 100), 0 если target <= 0.
    Округление до 2 знаков.
    """
    if target_amount <= 0:
        return 0.0
    progress = min(current_amount / target_amount * 100, 100)
    return round(progress, 2)


def remaining_amount(current_amount: float, target_amount: float) -> float:
    return max(target_amount - current_amount, 0)


def apply_amount_operation(current_amount: Decimal, amount: Decimal, operation: str) -> Decimal:
    """
    add / subtract / set. The result is clamped to >= 0.

    Raises:
        ValueError: unknown operation
    """
    if operation == "add":
        return max(Decimal("0"), current_amount + amount)
    if operation == "subtract":
        return max(Decimal("0"), current_amount - amount)
    if operation == "set":
        return max(Decimal("0"), amount)
    raise ValueError(f"Unknown operation: {operation}")


def should_auto_complete(status: str, new_amount: Decimal, target_amount: Decimal) -> bool:
    """ACTIVE goal reaching its target becomes COMPLETED; nothing moves it back automatically."""
    return status == GOAL_STATUS_ACTIVE and new_amount >= target_amount
