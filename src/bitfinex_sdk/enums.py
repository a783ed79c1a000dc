"""Перечисления SDK Bitfinex.

Значения перечислений совпадают с тем, что API Bitfinex принимает или
возвращает на проводе, поэтому их нельзя переименовывать или перенумеровывать.
"""

from enum import Enum, IntEnum, StrEnum
from typing import Final


class PlatformStatus(IntEnum):
    """Состояние платформы: ``1`` - работает, ``0`` - техническое обслуживание."""

    MAINTENANCE = 0
    OPERATIVE = 1


class BitfinexSort(Enum):
    """Порядок сортировки исторических выборок по полю ``mts``."""

    ASC = "+1"
    DESC = "-1"


class FundingAutoStatus(IntEnum):
    """Включение (``1``) или отключение (``0``) автопродления funding-предложений."""

    DEACTIVATE = 0
    ACTIVATE = 1


class CandleTimeframe(StrEnum):
    """Таймфреймы свечей, поддерживаемые ``v2/candles``."""

    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    THREE_HOURS = "3h"
    SIX_HOURS = "6h"
    TWELVE_HOURS = "12h"
    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    FOURTEEN_DAYS = "14D"
    ONE_MONTH = "1M"


class LedgerCategory(IntEnum):
    """Категории записей журнала (фильтр ``category`` в ``ledgers/hist``)."""

    EXCHANGE = 5
    POSITION_MODIFIED = 22
    POSITION_CLOSED = 23
    POSITION_FUNDING_COST = 25
    MARGIN_FUNDING_PAYMENT = 26
    MARGIN_FUNDING_CHARGE = 27
    SETTLEMENT = 28
    TRADING_FEE = 29
    TRADING_REBATE = 31
    DEPOSIT = 51
    WITHDRAWAL = 101
    WITHDRAWAL_EXPRESS_FEE = 104
    MINER_FEE = 105
    STAKING_PAYMENT = 201
    ADJUSTMENT = 204
    EXPENSE = 207
    CURRENCY_CONVERSION_FEE = 222
    MONTHLY_PROFIT_PAYMENT = 224
    LOSSES = 226
    TRANSFER = 241


# Единственный канонический список ключей ``v2/conf``; используется, когда
# ключи в запросе не указаны.
CONFIG_KEYS: Final[tuple[str, ...]] = (
    "pub:info:currency:restrict",
    "pub:info:pair:fee:ovr",
    "pub:info:pair:restrict",
    "pub:info:tx:status",
    "pub:list:category:securities",
    "pub:list:currency:futures",
    "pub:list:currency:margin",
    "pub:list:currency:paper",
    "pub:list:currency:securities:accredited",
    "pub:list:currency:securities:portfolio",
    "pub:list:currency:securities",
    "pub:list:currency:stable",
    "pub:list:currency:viewonly",
    "pub:list:features",
    "pub:list:pair:cst",
    "pub:list:pair:exchange",
    "pub:list:pair:futures",
    "pub:list:pair:margin",
    "pub:list:pair:securities",
    "pub:map:category:futures",
    "pub:map:category:securities",
    "pub:map:currency:explorer",
    "pub:map:currency:label",
    "pub:map:currency:pool",
    "pub:map:currency:support:securities",
    "pub:map:currency:support:zendesk",
    "pub:map:currency:sym",
    "pub:map:currency:tx:fee",
    "pub:map:currency:unit",
    "pub:map:currency:wfx",
    "pub:map:pair:sym",
    "pub:map:tx:method:pool",
    "pub:map:tx:method",
    "pub:spec:futures",
    "pub:spec:margin",
    "pub:spec:site:maintenance",
    "pub:spec:ui_denom",
)


def is_known_config_key(key: str) -> bool:
    """Проверить, входит ли ``key`` в известный реестр ключей конфигурации."""
    return key in CONFIG_KEYS
