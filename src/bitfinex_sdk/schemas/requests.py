"""Входные схемы вызовов клиента.

Каждая схема нормализует параметры вызова (коды валют и пар приводятся к
верхнему регистру, даты переводятся в миллисекунды) и собирает из них путь,
строку запроса или тело запроса. Параметры со значением ``None`` не
отправляются.

Взаимоисключающие селекторы (``pair``/``currency``/``symbol``, варианты свечей,
``status`` автопродления) описаны размеченными объединениями: вариант
выбирается по набору переданных ключей, а лишние ключи варианта запрещены.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Final, Literal

from pydantic import BeforeValidator, Discriminator, Field, StringConstraints, Tag, TypeAdapter

from bitfinex_sdk.enums import CONFIG_KEYS, BitfinexSort, CandleTimeframe, FundingAutoStatus, LedgerCategory
from bitfinex_sdk.schemas.base import CODE_PATTERN, Code, JsonValue, RawSymbol, RequestBase, compact, to_mts
from bitfinex_sdk.toolkit.derivations import format_amount, funding_symbol, trading_symbol

ALL_SYMBOLS: Final = "ALL"

ConfigKey = Annotated[str, StringConstraints(strip_whitespace=True, pattern=CODE_PATTERN)]


def _lookup(value: object, key: str) -> object:
    if isinstance(value, Mapping):
        return value.get(key)
    return getattr(value, key, None)


def _one_of(*keys: str) -> Callable[[object], str | None]:
    """Дискриминатор «ровно один из ключей»: ``None`` означает неоднозначный ввод."""

    def discriminate(value: object) -> str | None:
        present = [key for key in keys if _lookup(value, key) is not None]
        return present[0] if len(present) == 1 else None

    return discriminate


def _join_symbols(value: object) -> object:
    if isinstance(value, (list, tuple)):
        symbols = [item.strip() if isinstance(item, str) else item for item in value]
        if not symbols:
            msg = "Список символов не может быть пустым"
            raise ValueError(msg)
        if not all(isinstance(item, str) and item for item in symbols):
            msg = "Символы должны быть непустыми строками"
            raise ValueError(msg)
        return ",".join(symbols)
    return value


def _amount(value: object) -> object:
    """Строка передаётся как есть (без пробелов), число ≥ 0 форматируется ``format_amount``."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return value
    try:
        number = Decimal(str(value))
    except InvalidOperation as e:
        msg = f"Некорректное число {value!r}"
        raise ValueError(msg) from e
    if not number.is_finite() or number < 0:
        msg = f"Ожидалось неотрицательное число, получено {value!r}"
        raise ValueError(msg)
    try:
        return format_amount(number)
    except ArithmeticError as e:
        msg = f"Число {value!r} не представимо с точностью до 8 знаков"
        raise ValueError(msg) from e


Symbols = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1), BeforeValidator(_join_symbols)]
Amount = Annotated[str, BeforeValidator(_amount)]


# селекторы инструмента


class PairSelector(RequestBase):
    pair: Code

    @property
    def symbol(self) -> str:
        return trading_symbol(self.pair)


class CurrencySelector(RequestBase):
    currency: Code

    @property
    def symbol(self) -> str:
        return funding_symbol(self.currency)


class SymbolSelector(RequestBase):
    symbol: RawSymbol


class HistWindow(RequestBase):
    """Временное окно исторической выборки."""

    start: datetime | None = None
    end: datetime | None = None

    def window(self) -> dict[str, int | None]:
        return {"start": to_mts(self.start), "end": to_mts(self.end)}


TickerRequest = Annotated[
    Annotated[PairSelector, Tag("pair")]
    | Annotated[CurrencySelector, Tag("currency")]
    | Annotated[SymbolSelector, Tag("symbol")],
    Discriminator(_one_of("pair", "currency", "symbol")),
]


class TickersRequest(RequestBase):
    symbols: Symbols = ALL_SYMBOLS

    def to_params(self) -> dict[str, JsonValue]:
        return {"symbols": self.symbols}


class TickersHistRequest(HistWindow):
    symbols: Symbols = ALL_SYMBOLS
    limit: int = Field(default=100, le=250)

    def to_params(self) -> dict[str, JsonValue]:
        return compact({"symbols": self.symbols, **self.window(), "limit": self.limit})


class TradesHistBase(HistWindow):
    limit: int = Field(default=125, le=10000)
    sort: BitfinexSort = BitfinexSort.DESC

    def to_params(self) -> dict[str, JsonValue]:
        return compact({"limit": self.limit, "sort": self.sort.value, **self.window()})


class TradesHistPairRequest(TradesHistBase, PairSelector):
    pass


class TradesHistCurrencyRequest(TradesHistBase, CurrencySelector):
    pass


class TradesHistSymbolRequest(TradesHistBase, SymbolSelector):
    pass


TradesHistRequest = Annotated[
    Annotated[TradesHistPairRequest, Tag("pair")]
    | Annotated[TradesHistCurrencyRequest, Tag("currency")]
    | Annotated[TradesHistSymbolRequest, Tag("symbol")],
    Discriminator(_one_of("pair", "currency", "symbol")),
]


class CandlesBase(HistWindow):
    timeframe: CandleTimeframe = CandleTimeframe.ONE_HOUR
    limit: int | None = Field(default=None, le=10000)
    sort: BitfinexSort = BitfinexSort.DESC

    @property
    def period_key(self) -> str | None:
        return None

    @property
    def candle_key(self) -> str:
        """Ключ свечей ``trade:{timeframe}:{symbol}[:{period}]``."""
        parts = ["trade", self.timeframe.value, self.symbol]  # type: ignore[attr-defined]
        if self.period_key is not None:
            parts.append(self.period_key)
        return ":".join(parts)

    def to_params(self) -> dict[str, JsonValue]:
        return compact({"limit": self.limit, "sort": self.sort.value, **self.window()})


class CandlesPairRequest(CandlesBase, PairSelector):
    pass


class CandlesPeriodRequest(CandlesBase, CurrencySelector):
    """Funding-свечи за фиксированный срок: ``p{period}``."""

    period: int

    @property
    def period_key(self) -> str | None:
        return f"p{self.period}"


class CandlesRangeRequest(CandlesBase, CurrencySelector):
    """Агрегированные funding-свечи по диапазону сроков: ``a{aggregation}:p{start}:p{end}``."""

    period_start: int
    period_end: int
    aggregation: Literal[10, 30] = 30

    @property
    def period_key(self) -> str | None:
        return f"a{self.aggregation}:p{self.period_start}:p{self.period_end}"


_RANGE_KEYS: Final = ("period_start", "period_end", "aggregation")


def _candles_variant(value: object) -> str | None:
    has_pair = _lookup(value, "pair") is not None
    has_currency = _lookup(value, "currency") is not None
    if has_pair == has_currency:
        return None
    if has_pair:
        return "pair"
    if any(_lookup(value, key) is not None for key in _RANGE_KEYS):
        return "range"
    if _lookup(value, "period") is not None:
        return "period"
    return None


CandlesHistRequest = Annotated[
    Annotated[CandlesPairRequest, Tag("pair")]
    | Annotated[CandlesPeriodRequest, Tag("period")]
    | Annotated[CandlesRangeRequest, Tag("range")],
    Discriminator(_candles_variant),
]


class ConfigRequest(RequestBase):
    """Ключи конфигурации: строка - одно значение, список - словарь, ``None`` - все ключи."""

    keys: ConfigKey | Annotated[list[ConfigKey], Field(min_length=1)] | None = None

    @property
    def single(self) -> bool:
        return isinstance(self.keys, str)

    @property
    def key_list(self) -> list[str]:
        if self.keys is None:
            return list(CONFIG_KEYS)
        if isinstance(self.keys, str):
            return [self.keys]
        return list(self.keys)


class FundingStatsHistRequest(HistWindow):
    currency: Code = "USD"
    limit: int | None = Field(default=None, le=250)

    @property
    def symbol(self) -> str:
        return funding_symbol(self.currency)

    def to_params(self) -> dict[str, JsonValue]:
        return compact({**self.window(), "limit": self.limit})


# аутентифицированные вызовы


class OptionalCurrencyRequest(RequestBase):
    """Необязательный фильтр по funding-валюте."""

    currency: Code | None = None

    @property
    def symbol_suffix(self) -> str:
        """Суффикс пути ``/f{CUR}`` или пустая строка без фильтра."""
        return f"/{funding_symbol(self.currency)}" if self.currency is not None else ""


class LedgersHistRequest(HistWindow):
    currency: Code | None = None
    category: LedgerCategory | None = None
    limit: int | None = Field(default=None, le=2500)

    @property
    def currency_suffix(self) -> str:
        return f"/{self.currency}" if self.currency is not None else ""

    def to_params(self) -> dict[str, JsonValue]:
        category = int(self.category) if self.category is not None else None
        return compact({"category": category, "limit": self.limit, **self.window()})


class FundingCreditsHistRequest(HistWindow, OptionalCurrencyRequest):
    limit: int = Field(default=25, le=500)

    def to_params(self) -> dict[str, JsonValue]:
        return compact({**self.window(), "limit": self.limit})


class FundingTradesHistRequest(HistWindow, OptionalCurrencyRequest):
    limit: int | None = None

    def to_params(self) -> dict[str, JsonValue]:
        return compact({**self.window(), "limit": self.limit})


class FundingInfoRequest(RequestBase):
    currency: Code = "USD"

    @property
    def symbol(self) -> str:
        return funding_symbol(self.currency)


class FundingAutoStatusRequest(RequestBase):
    currency: Code

    def to_params(self) -> dict[str, JsonValue]:
        return {"currency": self.currency}


class FundingOfferCancelAllRequest(RequestBase):
    currency: Code | None = None

    def to_params(self) -> dict[str, JsonValue]:
        return compact({"currency": self.currency})


class FundingAutoDeactivateRequest(RequestBase):
    status: FundingAutoStatus
    currency: Code

    def to_params(self) -> dict[str, JsonValue]:
        return {"status": int(self.status), "currency": self.currency}


class FundingAutoActivateRequest(RequestBase):
    """Включение автопродления; ``amount`` и ``rate`` уходят на биржу строками."""

    status: FundingAutoStatus
    currency: Code
    period: int | None = Field(default=None, ge=2, le=120)
    amount: Amount | None = None
    rate: Amount | None = None

    def to_params(self) -> dict[str, JsonValue]:
        return compact({
            "status": int(self.status),
            "currency": self.currency,
            "period": self.period,
            "amount": self.amount,
            "rate": self.rate,
        })


def _funding_auto_variant(value: object) -> str | None:
    status = _lookup(value, "status")
    if isinstance(status, bool) or not isinstance(status, int):
        return None
    if status == FundingAutoStatus.ACTIVATE:
        return "activate"
    if status == FundingAutoStatus.DEACTIVATE:
        return "deactivate"
    return None


FundingAutoRequest = Annotated[
    Annotated[FundingAutoActivateRequest, Tag("activate")]
    | Annotated[FundingAutoDeactivateRequest, Tag("deactivate")],
    Discriminator(_funding_auto_variant),
]


TICKER_REQUEST: Final[TypeAdapter[Any]] = TypeAdapter(TickerRequest)
TICKERS_REQUEST: Final = TypeAdapter(TickersRequest)
TICKERS_HIST_REQUEST: Final = TypeAdapter(TickersHistRequest)
TRADES_HIST_REQUEST: Final[TypeAdapter[Any]] = TypeAdapter(TradesHistRequest)
CANDLES_HIST_REQUEST: Final[TypeAdapter[Any]] = TypeAdapter(CandlesHistRequest)
CONFIG_REQUEST: Final = TypeAdapter(ConfigRequest)
FUNDING_STATS_HIST_REQUEST: Final = TypeAdapter(FundingStatsHistRequest)
LEDGERS_HIST_REQUEST: Final = TypeAdapter(LedgersHistRequest)
OPTIONAL_CURRENCY_REQUEST: Final = TypeAdapter(OptionalCurrencyRequest)
FUNDING_CREDITS_HIST_REQUEST: Final = TypeAdapter(FundingCreditsHistRequest)
FUNDING_TRADES_HIST_REQUEST: Final = TypeAdapter(FundingTradesHistRequest)
FUNDING_INFO_REQUEST: Final = TypeAdapter(FundingInfoRequest)
FUNDING_AUTO_STATUS_REQUEST: Final = TypeAdapter(FundingAutoStatusRequest)
FUNDING_AUTO_REQUEST: Final[TypeAdapter[Any]] = TypeAdapter(FundingAutoRequest)
FUNDING_OFFER_CANCEL_ALL_REQUEST: Final = TypeAdapter(FundingOfferCancelAllRequest)
