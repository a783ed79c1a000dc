"""Схемы funding-эндпоинтов аккаунта: предложения, кредиты, сделки, автопродление.

Ставки (``rate``) передаются долей: 1% = 0.01.
"""

from decimal import Decimal
from typing import Final

from pydantic import Field, JsonValue, computed_field
from pydantic.dataclasses import dataclass as pdc_dataclass

from bitfinex_sdk.schemas.base import Flag, Mts, ResponseBase
from bitfinex_sdk.toolkit.derivations import symbol_code
from bitfinex_sdk.toolkit.positional import Nested, PositionalDecoder, SlotIndex, freeze_index

FUNDING_OFFER_INDEX: Final[SlotIndex] = freeze_index({
    "id": 0,
    "symbol": 1,
    "mts_create": 2,
    "mts_update": 3,
    "amount": 4,
    "amount_orig": 5,
    "type": 6,
    "flags": 9,
    "status": 10,
    "rate": 14,
    "period": 15,
    "notify": 16,
    "hidden": 17,
    "renew": 19,
})

FUNDING_CREDIT_INDEX: Final[SlotIndex] = freeze_index({
    "id": 0,
    "symbol": 1,
    "side": 2,
    "mts_create": 3,
    "mts_update": 4,
    "amount": 5,
    "flags": 6,
    "status": 7,
    "rate_type": 8,
    "rate": 11,
    "period": 12,
    "mts_opening": 13,
    "mts_last_payout": 14,
    "notify": 15,
    "hidden": 16,
    "renew": 18,
    "no_close": 20,
    "position_pair": 21,
})

FUNDING_LOAN_TRADE_INDEX: Final[SlotIndex] = freeze_index({
    "id": 0,
    "symbol": 1,
    "mts_create": 2,
    "offer_id": 3,
    "amount": 4,
    "rate": 5,
    "period": 6,
})

FUNDING_INFO_INDEX: Final[SlotIndex] = freeze_index({
    "symbol": 1,
    "stats": Nested(
        {"yield_loan": 0, "yield_lend": 1, "duration_loan": 2, "duration_lend": 3},
        slot=2,
        flatten=True,
    ),
})

FUNDING_AUTO_STATUS_INDEX: Final[SlotIndex] = freeze_index({
    "currency": 0,
    "period": 1,
    "rate": 2,
    "amount": 3,
})

NOTIFICATION_INDEX: Final[SlotIndex] = freeze_index({
    "mts": 0,
    "type": 1,
    "status": 6,
    "text": 7,
})

FUNDING_AUTO_INDEX: Final[SlotIndex] = freeze_index({
    "mts": 0,
    "type": 1,
    "msg_id": 2,
    "offer": Nested({"currency": 0, "period": 1, "rate": 2, "threshold": 3}, slot=4),
    "code": 5,
    "status": 6,
    "text": 7,
})


@pdc_dataclass(slots=True, frozen=True)
class FundingOfferResponse(ResponseBase):
    """Активное funding-предложение."""

    id: int | None = Field(default=None, description="Идентификатор предложения")
    symbol: str | None = Field(default=None, description="Валюта предложения, например fUSD")
    mts_create: Mts | None = Field(default=None)
    mts_update: Mts | None = Field(default=None)
    amount: Decimal | None = Field(default=None, description="Текущий объём")
    amount_orig: Decimal | None = Field(default=None, description="Объём при создании")
    type: str | None = Field(default=None, description="Тип предложения: LIMIT, ...")
    flags: JsonValue = Field(default=None, description="Зарезервировано биржей")
    status: str | None = Field(default=None, description="ACTIVE, PARTIALLY FILLED, ...")
    rate: Decimal | None = Field(default=None)
    period: int | None = Field(default=None, description="Срок, дней")
    notify: Flag | None = Field(default=None)
    hidden: Flag | None = Field(default=None)
    renew: Flag | None = Field(default=None)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def currency(self) -> str | None:
        return symbol_code(self.symbol)


@pdc_dataclass(slots=True, frozen=True)
class FundingCreditResponse(ResponseBase):
    """Funding-кредит, использованный в позиции (текущий или исторический)."""

    id: int | None = Field(default=None, description="Идентификатор кредита")
    symbol: str | None = Field(default=None)
    side: int | None = Field(default=None, description="1 - кредитор, 0 - обе стороны, -1 - заёмщик")
    mts_create: Mts | None = Field(default=None)
    mts_update: Mts | None = Field(default=None)
    amount: Decimal | None = Field(default=None)
    flags: JsonValue = Field(default=None)
    status: str | None = Field(default=None)
    rate_type: str | None = Field(default=None, description="FIXED или VAR (FRR)")
    rate: Decimal | None = Field(default=None)
    period: int | None = Field(default=None)
    mts_opening: Mts | None = Field(default=None)
    mts_last_payout: Mts | None = Field(default=None)
    notify: Flag | None = Field(default=None)
    hidden: Flag | None = Field(default=None)
    renew: Flag | None = Field(default=None)
    no_close: Flag | None = Field(default=None, description="Вернуть funding при закрытии позиции")
    position_pair: str | None = Field(default=None, description="Пара позиции, использующей кредит")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def currency(self) -> str | None:
        return symbol_code(self.symbol)


@pdc_dataclass(slots=True, frozen=True)
class FundingLoanTradeResponse(ResponseBase):
    """Funding-сделка аккаунта."""

    id: int | None = Field(default=None)
    symbol: str | None = Field(default=None)
    mts_create: Mts | None = Field(default=None)
    offer_id: int | None = Field(default=None, description="Идентификатор исходного предложения")
    amount: Decimal | None = Field(default=None)
    rate: Decimal | None = Field(default=None)
    period: int | None = Field(default=None)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def currency(self) -> str | None:
        return symbol_code(self.symbol)


@pdc_dataclass(slots=True, frozen=True)
class FundingInfoResponse(ResponseBase):
    """Средневзвешенные доходность и срок funding по валюте."""

    symbol: str | None = Field(default=None)
    yield_loan: Decimal | None = Field(default=None, description="Средняя ставка взятого funding")
    yield_lend: Decimal | None = Field(default=None, description="Средняя ставка предоставленного funding")
    duration_loan: Decimal | None = Field(default=None)
    duration_lend: Decimal | None = Field(default=None)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def currency(self) -> str | None:
        return symbol_code(self.symbol)


@pdc_dataclass(slots=True, frozen=True)
class FundingAutoStatusResponse(ResponseBase):
    """Настройки автопродления funding по валюте."""

    currency: str | None = Field(default=None)
    period: int | None = Field(default=None)
    rate: Decimal | None = Field(default=None)
    amount: Decimal | None = Field(default=None, description="Объём, участвующий в автопродлении")


@pdc_dataclass(slots=True, frozen=True)
class FundingAutoOfferResponse(ResponseBase):
    currency: str | None = Field(default=None)
    period: int | None = Field(default=None)
    rate: Decimal | None = Field(default=None)
    threshold: Decimal | None = Field(default=None, description="Максимальный объём автопродления")


@pdc_dataclass(slots=True, frozen=True)
class NotificationResponse(ResponseBase):
    """Уведомление о результате операции записи."""

    mts: Mts | None = Field(default=None)
    type: str | None = Field(default=None, description="Тип запроса, например foc_all-req")
    status: str | None = Field(default=None, description="SUCCESS, ERROR, FAILURE, ...")
    text: str | None = Field(default=None)


@pdc_dataclass(slots=True, frozen=True)
class FundingAutoResponse(ResponseBase):
    """Уведомление ``fa-req`` о смене настроек автопродления."""

    mts: Mts | None = Field(default=None)
    type: str | None = Field(default=None)
    msg_id: int | None = Field(default=None)
    offer: FundingAutoOfferResponse | None = Field(default=None)
    code: int | None = Field(default=None)
    status: str | None = Field(default=None)
    text: str | None = Field(default=None)


FUNDING_OFFER_DECODER = PositionalDecoder("funding_offers", FundingOfferResponse, FUNDING_OFFER_INDEX)
FUNDING_CREDIT_DECODER = PositionalDecoder("funding_credits", FundingCreditResponse, FUNDING_CREDIT_INDEX)
FUNDING_LOAN_TRADE_DECODER = PositionalDecoder(
    "funding_trades_hist", FundingLoanTradeResponse, FUNDING_LOAN_TRADE_INDEX
)
FUNDING_INFO_DECODER = PositionalDecoder("funding_info", FundingInfoResponse, FUNDING_INFO_INDEX)
FUNDING_AUTO_STATUS_DECODER = PositionalDecoder(
    "funding_auto_status", FundingAutoStatusResponse, FUNDING_AUTO_STATUS_INDEX
)
FUNDING_AUTO_DECODER = PositionalDecoder("funding_auto", FundingAutoResponse, FUNDING_AUTO_INDEX)
NOTIFICATION_DECODER = PositionalDecoder("funding_offer_cancel_all", NotificationResponse, NOTIFICATION_INDEX)


def decode_funding_auto_status(raw: object) -> FundingAutoStatusResponse | None:
    """Декодировать статус автопродления; ``null`` или пустой ответ означает «не настроено»."""
    if raw is None or raw == []:
        return None
    return FUNDING_AUTO_STATUS_DECODER.decode(raw)
