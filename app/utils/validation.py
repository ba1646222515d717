"""
Validation utilities
"""
import re
from decimal import Decimal, InvalidOperation


def normalize_decimal_input(value: str) -> str:
    """
    Нормализовать ввод суммы: убрать пробелы, заменить запятую на точку

    Example:
        >>> normalize_decimal_input("1 000,50")
        "1000.50"
    """
    return value.strip().replace(" ", "").replace(",", ".")


def parse_amount(value, max_decimal_places: int = 2) -> Decimal:
    """
    Привести сумму (str / int / float / Decimal) к Decimal

    Raises:
        ValueError: некорректное число или больше max_decimal_places знаков

    Example:
        >>> parse_amount("100,50")
        Decimal("100.50")
        >>> parse_amount(950)
        Decimal("950")
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        normalized = normalize_decimal_input(value)
        pattern = rf"^-?\d+(\.\d{{1,{max_decimal_places}}})?$"
        if not re.match(pattern, normalized):
            raise ValueError("Некорректная сумма")
        amount = Decimal(normalized)
    else:
        raise ValueError("Некорректная сумма")

    try:
        if not amount.is_finite():
            raise ValueError("Некорректная сумма")
        if -amount.as_tuple().exponent > max_decimal_places and amount != amount.quantize(Decimal(1).scaleb(-max_decimal_places)):
            raise ValueError(f"Максимум {max_decimal_places} знака после запятой")
    except InvalidOperation:
        raise ValueError("Некорректная сумма")
    return amount


def validate_name(value: str | None, max_length: int) -> str:
    """
    Strip and check 1..max_length characters

    Raises:
        ValueError: пустое или слишком длинное название
    """
    name = (value or "").strip()
    if not name:
        raise ValueError("Название не может быть пустым")
    if len(name) > max_length:
        raise ValueError(f"Название длиннее {max_length} символов")
    return name
