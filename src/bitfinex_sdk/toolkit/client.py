"""Клиент REST API Bitfinex.

Каждый публичный вызов проходит одну и ту же цепочку: проверка входных
параметров (до любого сетевого запроса) ➜ запрос через транспорт ➜ отказ на
структурированной ошибке биржи ➜ декодирование ответа. Весь вызов обёрнут
``map_sdk_errors``, который прикрепляет к ошибке имя вызова и его параметры.

Клиент не хранит состояния между вызовами, не повторяет запросы и не
ограничивает их частоту.
"""

from __future__ import annotations

import logging
import types
from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Self

from pydantic import ValidationError

from bitfinex_sdk.contracts.errors import (
    InputValidationError,
    SchemaIssue,
    SchemaValidationError,
    UpstreamError,
    is_error_payload,
)
from bitfinex_sdk.contracts.ports.transport import BitfinexClientConfig
from bitfinex_sdk.enums import BitfinexSort, CandleTimeframe, FundingAutoStatus, LedgerCategory, is_known_config_key
from bitfinex_sdk.schemas.account import USER_INFO_DECODER, PermissionResponse, UserInfoResponse, decode_permissions
from bitfinex_sdk.schemas.balance import LEDGER_DECODER, WALLET_DECODER, LedgerResponse, WalletResponse
from bitfinex_sdk.schemas.base import RequestBase, compact
from bitfinex_sdk.schemas.funding import (
    FUNDING_AUTO_DECODER,
    FUNDING_CREDIT_DECODER,
    FUNDING_INFO_DECODER,
    FUNDING_LOAN_TRADE_DECODER,
    FUNDING_OFFER_DECODER,
    NOTIFICATION_DECODER,
    FundingAutoResponse,
    FundingAutoStatusResponse,
    FundingCreditResponse,
    FundingInfoResponse,
    FundingLoanTradeResponse,
    FundingOfferResponse,
    NotificationResponse,
    decode_funding_auto_status,
)
from bitfinex_sdk.schemas.market import (
    CANDLE_DECODER,
    FUNDING_STATS_DECODER,
    TRADES_DISPATCH,
    CandleResponse,
    FundingStatsResponse,
    TradeResponse,
)
from bitfinex_sdk.schemas.platform import (
    PLATFORM_STATUS_DECODER,
    GeoIpResponse,
    PlatformStatusResponse,
    SymbolDetailsResponse,
    decode_geo_ip,
    decode_symbols_details,
    zip_config,
)
from bitfinex_sdk.schemas.requests import (
    CANDLES_HIST_REQUEST,
    CONFIG_REQUEST,
    FUNDING_AUTO_REQUEST,
    FUNDING_AUTO_STATUS_REQUEST,
    FUNDING_CREDITS_HIST_REQUEST,
    FUNDING_INFO_REQUEST,
    FUNDING_OFFER_CANCEL_ALL_REQUEST,
    FUNDING_STATS_HIST_REQUEST,
    FUNDING_TRADES_HIST_REQUEST,
    LEDGERS_HIST_REQUEST,
    OPTIONAL_CURRENCY_REQUEST,
    TICKER_REQUEST,
    TICKERS_HIST_REQUEST,
    TICKERS_REQUEST,
    TRADES_HIST_REQUEST,
)
from bitfinex_sdk.schemas.ticker import TICKER_DISPATCH, TICKER_HIST_DECODER, TickerHistResponse, TickerResponse
from bitfinex_sdk.toolkit.error_mapper import bind_call_params, map_sdk_errors
from bitfinex_sdk.toolkit.positional import expect_records
from bitfinex_sdk.toolkit.signer import build_signer
from bitfinex_sdk.toolkit.transport import HttpxTransport

if TYPE_CHECKING:
    from pydantic import JsonValue, TypeAdapter

    from bitfinex_sdk.contracts.ports.signer import SignerPort
    from bitfinex_sdk.contracts.ports.transport import TransportPort

logger = logging.getLogger(__name__)


class BitfinexClient:
    """Типизированный клиент REST API Bitfinex.

    Пример::

        async with BitfinexClient(BitfinexClientConfig(api_key=..., api_secret=...)) as bfx:
            status = await bfx.platform_status()
            wallets = await bfx.wallets()
    """

    def __init__(
        self,
        config: BitfinexClientConfig | None = None,
        *,
        transport: TransportPort | None = None,
        signer: SignerPort | None = None,
    ) -> None:
        """Инициализировать клиента.

        Параметры
        ----------
        config: BitfinexClientConfig | None
            Учётные данные, адреса API и тайм-аут; по умолчанию только публичный доступ.
        transport: TransportPort | None
            Готовый транспорт; по умолчанию ``HttpxTransport``.
        signer: SignerPort | None
            Подпись запросов для транспорта по умолчанию; по умолчанию выбирается
            по учётным данным конфигурации.
        """
        self._config = config or BitfinexClientConfig()
        if transport is None:
            transport = HttpxTransport(self._config, signer or build_signer(self._config))
        self._transport = transport

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self, exc_t: type[BaseException] | None, exc: BaseException | None, tb: types.TracebackType | None
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Закрыть транспорт клиента."""
        await self._transport.aclose()

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _parse[T](adapter: TypeAdapter[T], params: Mapping[str, Any]) -> T:
        """Проверить параметры вызова входной схемой; ``None`` означает «не передан».

        Нормализованные параметры запоминаются для контекста последующих ошибок вызова.
        """
        given = compact(params)
        try:
            req = adapter.validate_python(given)
        except ValidationError as e:
            raise InputValidationError.from_validation(e, given) from e
        if isinstance(req, RequestBase):
            bind_call_params(req.normalised())
        return req

    @staticmethod
    def _checked(payload: JsonValue) -> JsonValue:
        if is_error_payload(payload):
            raise UpstreamError.from_payload(payload)  # type: ignore[arg-type]
        return payload

    async def _public(self, path: str, query: Mapping[str, JsonValue] | None = None) -> JsonValue:
        return self._checked(await self._transport.request("GET", path, query=query))

    async def _auth(self, path: str, body: Mapping[str, JsonValue] | None = None) -> JsonValue:
        return self._checked(await self._transport.request("POST", path, body=body or {}, auth=True))

    # ------------------------------------------------------------------ public

    @map_sdk_errors
    async def platform_status(self) -> PlatformStatusResponse:
        """Состояние платформы: работает или на обслуживании."""
        return PLATFORM_STATUS_DECODER.decode(await self._public("v2/platform/status"))

    @map_sdk_errors
    async def ticker(
        self, *, pair: str | None = None, currency: str | None = None, symbol: str | None = None
    ) -> TickerResponse:
        """Тикер одного инструмента; нужен ровно один из ``pair``, ``currency``, ``symbol``."""
        req = self._parse(TICKER_REQUEST, {"pair": pair, "currency": currency, "symbol": symbol})
        raw = await self._public("v2/tickers", {"symbols": req.symbol})
        records = expect_records(raw, name="ticker")
        if not records:
            raise SchemaValidationError(
                decoder="ticker",
                payload=raw,
                issues=(SchemaIssue(path="", expected="array[1]", received=raw),),
            )
        return TICKER_DISPATCH.decode(records[0])

    @map_sdk_errors
    async def tickers(self, symbols: str | Sequence[str] | None = None) -> list[TickerResponse]:
        """Тикеры нескольких инструментов; по умолчанию все (``ALL``)."""
        req = self._parse(TICKERS_REQUEST, {"symbols": symbols})
        return TICKER_DISPATCH.decode_each(await self._public("v2/tickers", req.to_params()))

    @map_sdk_errors
    async def tickers_hist(
        self,
        symbols: str | Sequence[str] | None = None,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[TickerHistResponse]:
        """История цен bid/ask тикеров."""
        req = self._parse(TICKERS_HIST_REQUEST, {"symbols": symbols, "start": start, "end": end, "limit": limit})
        return TICKER_HIST_DECODER.decode_many(await self._public("v2/tickers/hist", req.to_params()))

    @map_sdk_errors
    async def trades_hist(
        self,
        *,
        pair: str | None = None,
        currency: str | None = None,
        symbol: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        sort: BitfinexSort | None = None,
    ) -> list[TradeResponse]:
        """Последние сделки по паре или funding-валюте; форма записи определяется по первой записи."""
        req = self._parse(
            TRADES_HIST_REQUEST,
            {
                "pair": pair,
                "currency": currency,
                "symbol": symbol,
                "start": start,
                "end": end,
                "limit": limit,
                "sort": sort,
            },
        )
        raw = await self._public(f"v2/trades/{req.symbol}/hist", req.to_params())
        return TRADES_DISPATCH.decode_uniform(raw)

    @map_sdk_errors
    async def candles_hist(  # noqa: PLR0913
        self,
        *,
        pair: str | None = None,
        currency: str | None = None,
        period: int | None = None,
        period_start: int | None = None,
        period_end: int | None = None,
        aggregation: int | None = None,
        timeframe: CandleTimeframe | str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        sort: BitfinexSort | None = None,
    ) -> list[CandleResponse]:
        """Свечи торговой пары или funding-валюты.

        Для funding-валюты задаётся либо ``period`` (срок в днях), либо диапазон
        ``period_start``..``period_end`` с агрегацией 10 или 30.
        """
        req = self._parse(
            CANDLES_HIST_REQUEST,
            {
                "pair": pair,
                "currency": currency,
                "period": period,
                "period_start": period_start,
                "period_end": period_end,
                "aggregation": aggregation,
                "timeframe": timeframe,
                "start": start,
                "end": end,
                "limit": limit,
                "sort": sort,
            },
        )
        raw = await self._public(f"v2/candles/{req.candle_key}/hist", req.to_params())
        return CANDLE_DECODER.decode_many(raw)

    @map_sdk_errors
    async def config(self, keys: str | Sequence[str] | None = None) -> JsonValue | dict[str, JsonValue]:
        """Значения конфигурации платформы.

        Один ключ-строка ➜ само значение; список ключей ➜ словарь ``{ключ: значение}``
        в порядке запроса; без ключей запрашиваются все ``CONFIG_KEYS``.
        """
        req = self._parse(CONFIG_REQUEST, {"keys": list(keys) if isinstance(keys, (list, tuple)) else keys})
        key_list = req.key_list
        unknown = [key for key in key_list if not is_known_config_key(key)]
        if unknown:
            logger.debug("Запрошены ключи конфигурации вне реестра: %s", unknown)
        values = zip_config(key_list, await self._public(f"v2/conf/{','.join(key_list)}"))
        if req.single:
            return values[key_list[0]]
        return values

    @map_sdk_errors
    async def funding_stats_hist(
        self,
        currency: str | None = None,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[FundingStatsResponse]:
        """История статистики funding-валюты (по умолчанию USD)."""
        req = self._parse(
            FUNDING_STATS_HIST_REQUEST, {"currency": currency, "start": start, "end": end, "limit": limit}
        )
        raw = await self._public(f"v2/funding/stats/{req.symbol}/hist", req.to_params())
        return FUNDING_STATS_DECODER.decode_many(raw)

    @map_sdk_errors
    async def symbols_details(self) -> list[SymbolDetailsResponse]:
        """Параметры торговых пар (API v1)."""
        return decode_symbols_details(await self._public("v1/symbols_details"))

    @map_sdk_errors
    async def geo_ip(self) -> GeoIpResponse:
        """Геолокация IP-адреса, с которого выполняется запрос."""
        return decode_geo_ip(await self._public("v2/int/geo/ip"))

    # ------------------------------------------------------------------ authenticated

    @map_sdk_errors
    async def permissions(self) -> dict[str, PermissionResponse]:
        """Права ключа API по областям."""
        return decode_permissions(await self._auth("v2/auth/r/permissions"))

    @map_sdk_errors
    async def wallets(self) -> list[WalletResponse]:
        """Кошельки аккаунта."""
        return WALLET_DECODER.decode_many(await self._auth("v2/auth/r/wallets"))

    @map_sdk_errors
    async def user_info(self) -> UserInfoResponse:
        """Сведения о пользователе."""
        return USER_INFO_DECODER.decode(await self._auth("v2/auth/r/info/user"))

    @map_sdk_errors
    async def ledgers_hist(
        self,
        currency: str | None = None,
        *,
        category: LedgerCategory | int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[LedgerResponse]:
        """Журнал движения средств, при необходимости по одной валюте и категории."""
        req = self._parse(
            LEDGERS_HIST_REQUEST,
            {"currency": currency, "category": category, "start": start, "end": end, "limit": limit},
        )
        raw = await self._auth(f"v2/auth/r/ledgers{req.currency_suffix}/hist", req.to_params())
        return LEDGER_DECODER.decode_many(raw)

    @map_sdk_errors
    async def funding_offers(self, currency: str | None = None) -> list[FundingOfferResponse]:
        """Активные funding-предложения."""
        req = self._parse(OPTIONAL_CURRENCY_REQUEST, {"currency": currency})
        return FUNDING_OFFER_DECODER.decode_many(await self._auth(f"v2/auth/r/funding/offers{req.symbol_suffix}"))

    @map_sdk_errors
    async def funding_credits(self, currency: str | None = None) -> list[FundingCreditResponse]:
        """Funding-кредиты, используемые в позициях."""
        req = self._parse(OPTIONAL_CURRENCY_REQUEST, {"currency": currency})
        return FUNDING_CREDIT_DECODER.decode_many(await self._auth(f"v2/auth/r/funding/credits{req.symbol_suffix}"))

    @map_sdk_errors
    async def funding_credits_hist(
        self,
        currency: str | None = None,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[FundingCreditResponse]:
        """История funding-кредитов."""
        req = self._parse(
            FUNDING_CREDITS_HIST_REQUEST, {"currency": currency, "start": start, "end": end, "limit": limit}
        )
        raw = await self._auth(f"v2/auth/r/funding/credits{req.symbol_suffix}/hist", req.to_params())
        return FUNDING_CREDIT_DECODER.decode_many(raw)

    @map_sdk_errors
    async def funding_trades_hist(
        self,
        currency: str | None = None,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
    ) -> list[FundingLoanTradeResponse]:
        """История funding-сделок аккаунта."""
        req = self._parse(
            FUNDING_TRADES_HIST_REQUEST, {"currency": currency, "start": start, "end": end, "limit": limit}
        )
        raw = await self._auth(f"v2/auth/r/funding/trades{req.symbol_suffix}/hist", req.to_params())
        return FUNDING_LOAN_TRADE_DECODER.decode_many(raw)

    @map_sdk_errors
    async def funding_info(self, currency: str | None = None) -> FundingInfoResponse:
        """Средние доходность и срок funding по валюте (по умолчанию USD)."""
        req = self._parse(FUNDING_INFO_REQUEST, {"currency": currency})
        return FUNDING_INFO_DECODER.decode(await self._auth(f"v2/auth/r/info/funding/{req.symbol}"))

    @map_sdk_errors
    async def funding_auto_status(self, currency: str) -> FundingAutoStatusResponse | None:
        """Настройки автопродления; ``None``, если автопродление не настроено."""
        req = self._parse(FUNDING_AUTO_STATUS_REQUEST, {"currency": currency})
        return decode_funding_auto_status(await self._auth("v2/auth/r/funding/auto/status", req.to_params()))

    @map_sdk_errors
    async def funding_auto(  # noqa: PLR0913
        self,
        status: FundingAutoStatus | int,
        currency: str,
        *,
        period: int | None = None,
        amount: str | Decimal | float | None = None,
        rate: str | Decimal | float | None = None,
    ) -> FundingAutoResponse:
        """Включить (``ACTIVATE``) или отключить (``DEACTIVATE``) автопродление.

        ``period``, ``amount`` и ``rate`` допустимы только при включении.
        """
        req = self._parse(
            FUNDING_AUTO_REQUEST,
            {"status": status, "currency": currency, "period": period, "amount": amount, "rate": rate},
        )
        return FUNDING_AUTO_DECODER.decode(await self._auth("v2/auth/w/funding/auto", req.to_params()))

    @map_sdk_errors
    async def funding_offer_cancel_all(self, currency: str | None = None) -> NotificationResponse:
        """Отменить все funding-предложения (или только по валюте ``currency``)."""
        req = self._parse(FUNDING_OFFER_CANCEL_ALL_REQUEST, {"currency": currency})
        return NOTIFICATION_DECODER.decode(await self._auth("v2/auth/w/funding/offer/cancel/all", req.to_params()))
