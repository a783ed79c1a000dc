"""Производные поля: коды символов и пересчёт ставок.

Символ Bitfinex начинается с однобуквенного префикса типа: ``t`` - торговая
пара, ``f`` - funding-валюта. Все декодеры и входные схемы строят и разбирают
символы только через функции этого модуля.

Функции чистые: производные значения пересчитываются из исходных полей при
каждом обращении.
"""

from decimal import Decimal, localcontext

TRADING_PREFIX = "t"
FUNDING_PREFIX = "f"

DAYS_PER_YEAR = 365
RATE_PLACES = 8


def trading_symbol(pair: str) -> str:
    """Построить символ торговой пары: ``BTCUSD`` ➜ ``tBTCUSD``."""
    return f"{TRADING_PREFIX}{pair}"


def funding_symbol(currency: str) -> str:
    """Построить символ funding-валюты: ``USD`` ➜ ``fUSD``."""
    return f"{FUNDING_PREFIX}{currency}"


def is_trading_symbol(symbol: str) -> bool:
    return symbol.startswith(TRADING_PREFIX)


def is_funding_symbol(symbol: str) -> bool:
    return symbol.startswith(FUNDING_PREFIX)


def symbol_code(symbol: str | None) -> str | None:
    """Вернуть код пары/валюты без префикса типа; символ без префикса возвращается как есть."""
    if symbol is None:
        return None
    if is_trading_symbol(symbol) or is_funding_symbol(symbol):
        return symbol[1:]
    return symbol


def _round(value: Decimal) -> Decimal:
    return round(value, RATE_PLACES)


def daily_percentage(rate: Decimal | None) -> Decimal | None:
    """Дневная ставка в процентах: ``rate × 100``."""
    if rate is None:
        return None
    return _round(rate * 100)


def annual_percentage(rate: Decimal | None) -> Decimal | None:
    """Годовая ставка в процентах: ``rate × 365 × 100``."""
    if rate is None:
        return None
    return _round(rate * DAYS_PER_YEAR * 100)


def rate_from_div365(rate_div365: Decimal | None) -> Decimal | None:
    """Ставка из значения в 1/365 долях: ``r365 × 365``."""
    if rate_div365 is None:
        return None
    return _round(rate_div365 * DAYS_PER_YEAR)


def annual_from_div365(rate_div365: Decimal | None) -> Decimal | None:
    """Годовая ставка из значения в 1/365 долях: ``r365 × 365 × 365``."""
    if rate_div365 is None:
        return None
    return _round(rate_div365 * DAYS_PER_YEAR * DAYS_PER_YEAR)


def format_amount(value: Decimal) -> str:
    """Форматировать число для тела запроса: не более 8 знаков после точки, без экспоненты."""
    with localcontext() as ctx:
        # точности контекста должно хватать на все целые разряды и 8 дробных
        ctx.prec = max(ctx.prec, value.adjusted() + RATE_PLACES + 2)
        text = format(round(value, RATE_PLACES), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
