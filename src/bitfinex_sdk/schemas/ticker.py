"""Схемы тикеров: ``v2/tickers`` и ``v2/tickers/hist``.

Форма тикера зависит от типа инструмента и определяется только длиной записи:
11 слотов - торговая пара, 17 слотов - funding-валюта.
"""

from decimal import Decimal
from typing import Final

from pydantic import Field, computed_field
from pydantic.dataclasses import dataclass as pdc_dataclass

from bitfinex_sdk.schemas.base import Mts, ResponseBase
from bitfinex_sdk.toolkit.derivations import annual_percentage, daily_percentage, is_trading_symbol, symbol_code
from bitfinex_sdk.toolkit.positional import LengthDispatch, PositionalDecoder, SlotIndex, freeze_index

TRADING_TICKER_LENGTH: Final = 11
FUNDING_TICKER_LENGTH: Final = 17

TRADING_TICKER_INDEX: Final[SlotIndex] = freeze_index({
    "symbol": 0,
    "bid_price": 1,
    "bid_size": 2,
    "ask_price": 3,
    "ask_size": 4,
    "daily_change": 5,
    "daily_change_relative": 6,
    "last_price": 7,
    "volume": 8,
    "high": 9,
    "low": 10,
})

# слоты 14 и 15 зарезервированы биржей
FUNDING_TICKER_INDEX: Final[SlotIndex] = freeze_index({
    "symbol": 0,
    "frr": 1,
    "bid_price": 2,
    "bid_period": 3,
    "bid_size": 4,
    "ask_price": 5,
    "ask_period": 6,
    "ask_size": 7,
    "daily_change": 8,
    "daily_change_perc": 9,
    "last_price": 10,
    "volume": 11,
    "high": 12,
    "low": 13,
    "frr_amount_available": 16,
})

TICKER_HIST_INDEX: Final[SlotIndex] = freeze_index({
    "symbol": 0,
    "bid_price": 1,
    "ask_price": 3,
    "mts": 12,
})


@pdc_dataclass(slots=True, frozen=True)
class TradingTickerResponse(ResponseBase):
    """Тикер торговой пары."""

    symbol: str | None = Field(default=None, description="Символ, например tBTCUSD")
    bid_price: Decimal | None = Field(default=None, description="Лучшая цена покупки")
    bid_size: Decimal | None = Field(default=None, description="Сумма 25 лучших заявок на покупку")
    ask_price: Decimal | None = Field(default=None, description="Лучшая цена продажи")
    ask_size: Decimal | None = Field(default=None, description="Сумма 25 лучших заявок на продажу")
    daily_change: Decimal | None = Field(default=None, description="Изменение цены за сутки")
    daily_change_relative: Decimal | None = Field(default=None, description="Относительное изменение за сутки")
    last_price: Decimal | None = Field(default=None, description="Цена последней сделки")
    volume: Decimal | None = Field(default=None, description="Суточный объём")
    high: Decimal | None = Field(default=None, description="Суточный максимум")
    low: Decimal | None = Field(default=None, description="Суточный минимум")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pair(self) -> str | None:
        """Код пары без префикса ``t``."""
        return symbol_code(self.symbol)


@pdc_dataclass(slots=True, frozen=True)
class FundingTickerResponse(ResponseBase):
    """Тикер funding-валюты с производными дневной и годовой ставками."""

    symbol: str | None = Field(default=None, description="Символ, например fUSD")
    frr: Decimal | None = Field(default=None, description="Flash Return Rate за последний час")
    bid_price: Decimal | None = Field(default=None, description="Лучшая ставка спроса")
    bid_period: int | None = Field(default=None, description="Срок спроса, дней")
    bid_size: Decimal | None = Field(default=None, description="Сумма 25 лучших заявок спроса")
    ask_price: Decimal | None = Field(default=None, description="Лучшая ставка предложения")
    ask_period: int | None = Field(default=None, description="Срок предложения, дней")
    ask_size: Decimal | None = Field(default=None, description="Сумма 25 лучших предложений")
    daily_change: Decimal | None = Field(default=None, description="Изменение за сутки")
    daily_change_perc: Decimal | None = Field(default=None, description="Относительное изменение за сутки")
    last_price: Decimal | None = Field(default=None, description="Ставка последней сделки")
    volume: Decimal | None = Field(default=None, description="Суточный объём")
    high: Decimal | None = Field(default=None, description="Суточный максимум")
    low: Decimal | None = Field(default=None, description="Суточный минимум")
    frr_amount_available: Decimal | None = Field(default=None, description="Объём, доступный по FRR")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def currency(self) -> str | None:
        """Код валюты без префикса ``f``."""
        return symbol_code(self.symbol)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def dpr(self) -> Decimal | None:
        """Дневная ставка FRR в процентах."""
        return daily_percentage(self.frr)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def apr(self) -> Decimal | None:
        """Годовая ставка FRR в процентах."""
        return annual_percentage(self.frr)


@pdc_dataclass(slots=True, frozen=True)
class TickerHistResponse(ResponseBase):
    """Исторический снимок тикера."""

    symbol: str | None = Field(default=None)
    bid_price: Decimal | None = Field(default=None)
    ask_price: Decimal | None = Field(default=None)
    mts: Mts | None = Field(default=None, description="Время снимка")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pair(self) -> str | None:
        """Код пары для торговых символов, иначе ``None``."""
        if self.symbol is None or not is_trading_symbol(self.symbol):
            return None
        return symbol_code(self.symbol)


type TickerResponse = TradingTickerResponse | FundingTickerResponse

TRADING_TICKER_DECODER = PositionalDecoder("ticker.trading", TradingTickerResponse, TRADING_TICKER_INDEX)
FUNDING_TICKER_DECODER = PositionalDecoder("ticker.funding", FundingTickerResponse, FUNDING_TICKER_INDEX)
TICKER_DISPATCH: LengthDispatch[TickerResponse] = LengthDispatch("ticker", {
    TRADING_TICKER_LENGTH: TRADING_TICKER_DECODER,
    FUNDING_TICKER_LENGTH: FUNDING_TICKER_DECODER,
})
TICKER_HIST_DECODER = PositionalDecoder("tickers_hist", TickerHistResponse, TICKER_HIST_INDEX)
