"""Схемы рыночных данных: сделки, свечи и статистика funding.

Сделки торговой пары и funding-сделки приходят из одного эндпоинта
``v2/trades/{symbol}/hist`` и различаются только длиной записи (4 и 5 слотов).
"""

from decimal import Decimal
from typing import Final

from pydantic import Field, computed_field
from pydantic.dataclasses import dataclass as pdc_dataclass

from bitfinex_sdk.schemas.base import Mts, ResponseBase
from bitfinex_sdk.toolkit.derivations import annual_from_div365, rate_from_div365
from bitfinex_sdk.toolkit.positional import LengthDispatch, PositionalDecoder, SlotIndex, freeze_index

TRADING_TRADE_LENGTH: Final = 4
FUNDING_TRADE_LENGTH: Final = 5

TRADING_TRADE_INDEX: Final[SlotIndex] = freeze_index({
    "id": 0,
    "mts": 1,
    "amount": 2,
    "price": 3,
})

FUNDING_TRADE_INDEX: Final[SlotIndex] = freeze_index({
    "id": 0,
    "mts": 1,
    "amount": 2,
    "rate": 3,
    "period": 4,
})

CANDLE_INDEX: Final[SlotIndex] = freeze_index({
    "mts": 0,
    "open": 1,
    "close": 2,
    "high": 3,
    "low": 4,
    "volume": 5,
})

FUNDING_STATS_INDEX: Final[SlotIndex] = freeze_index({
    "mts": 0,
    "frr_div365": 3,
    "avg_period": 4,
    "amount": 7,
    "amount_used": 8,
    "below_threshold": 11,
})


@pdc_dataclass(slots=True, frozen=True)
class TradingTradeResponse(ResponseBase):
    """Сделка по торговой паре."""

    id: int | None = Field(default=None, description="Идентификатор сделки")
    mts: Mts | None = Field(default=None, description="Время сделки")
    amount: Decimal | None = Field(default=None, description="Объём: покупка > 0, продажа < 0")
    price: Decimal | None = Field(default=None, description="Цена сделки")


@pdc_dataclass(slots=True, frozen=True)
class FundingTradeResponse(ResponseBase):
    """Funding-сделка: ставка и срок вместо цены."""

    id: int | None = Field(default=None, description="Идентификатор сделки")
    mts: Mts | None = Field(default=None, description="Время сделки")
    amount: Decimal | None = Field(default=None, description="Объём: покупка > 0, продажа < 0")
    rate: Decimal | None = Field(default=None, description="Ставка сделки")
    period: int | None = Field(default=None, description="Срок, дней")


@pdc_dataclass(slots=True, frozen=True)
class CandleResponse(ResponseBase):
    """Свеча за интервал таймфрейма."""

    mts: Mts | None = Field(default=None, description="Начало интервала")
    open: Decimal | None = Field(default=None, description="Первая сделка интервала")
    close: Decimal | None = Field(default=None, description="Последняя сделка интервала")
    high: Decimal | None = Field(default=None)
    low: Decimal | None = Field(default=None)
    volume: Decimal | None = Field(default=None, description="Объём за интервал")


@pdc_dataclass(slots=True, frozen=True)
class FundingStatsResponse(ResponseBase):
    """Статистика funding-валюты.

    ``frr_div365`` передаётся биржей в долях 1/365, поэтому ``frr`` умножает его
    на 365, а годовая ставка ``apr`` - на 365².
    """

    mts: Mts | None = Field(default=None)
    frr_div365: Decimal | None = Field(default=None, description="1/365 Flash Return Rate")
    avg_period: Decimal | None = Field(default=None, description="Средний срок предоставленного funding")
    amount: Decimal | None = Field(default=None, description="Всего предоставлено")
    amount_used: Decimal | None = Field(default=None, description="Использовано в позициях")
    below_threshold: Decimal | None = Field(default=None, description="Открытые предложения < 0.75%")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def frr(self) -> Decimal | None:
        return rate_from_div365(self.frr_div365)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def apr(self) -> Decimal | None:
        return annual_from_div365(self.frr_div365)


type TradeResponse = TradingTradeResponse | FundingTradeResponse

TRADING_TRADE_DECODER = PositionalDecoder("trades_hist.trading", TradingTradeResponse, TRADING_TRADE_INDEX)
FUNDING_TRADE_DECODER = PositionalDecoder("trades_hist.funding", FundingTradeResponse, FUNDING_TRADE_INDEX)
TRADES_DISPATCH: LengthDispatch[TradeResponse] = LengthDispatch("trades_hist", {
    TRADING_TRADE_LENGTH: TRADING_TRADE_DECODER,
    FUNDING_TRADE_LENGTH: FUNDING_TRADE_DECODER,
})
CANDLE_DECODER = PositionalDecoder("candles_hist", CandleResponse, CANDLE_INDEX)
FUNDING_STATS_DECODER = PositionalDecoder("funding_stats_hist", FundingStatsResponse, FUNDING_STATS_INDEX)
