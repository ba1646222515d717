"""
Unified money formatting for the whole project.

Usage:
    from app.utils.money import format_money

    format_money(15000, "ARS")     -> "$ 15.000,00"
    format_money(1200.5, "USD")    -> "1.200,50 USD"
    format_money(0, "EUR", 0)      -> "0 EUR"
"""
from decimal import Decimal

# Префикс для ARS - «$», для остальных - ISO-код валюты суффиксом
_CURRENCY_PREFIX = {
    "ARS": "$",
}


def format_money(amount, currency: str = "ARS", decimals: int = 2) -> str:
    """
    Отформатировать сумму: точка - разделитель тысяч, запятая - десятичный.

    Args:
        amount: число (int / float / Decimal / str)
        currency: ISO-код валюты (ARS, USD, EUR …)
        decimals: знаков после запятой

    Returns:
        "$ 15.000,00" / "1.200,50 USD"
    """
    if isinstance(amount, str):
        amount = Decimal(amount)
    fmt = f"{{:,.{decimals}f}}"
    formatted = fmt.format(amount).replace(",", "_").replace(".", ",").replace("_", ".")
    prefix = _CURRENCY_PREFIX.get(currency)
    if prefix:
        return f"{prefix} {formatted}"
    return f"{formatted} {currency}"


def format_percent(value: float) -> str:
    """85.456 -> "85,5%" """
    return f"{value:.1f}%".replace(".", ",")
