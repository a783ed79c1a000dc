from decimal import Decimal
from typing import Final

from pydantic import Field, JsonValue, computed_field
from pydantic.dataclasses import dataclass as pdc_dataclass

from bitfinex_sdk.schemas.base import Mts, ResponseBase
from bitfinex_sdk.toolkit.positional import PositionalDecoder, SlotIndex, freeze_index

WALLET_INDEX: Final[SlotIndex] = freeze_index({
    "type": 0,
    "currency": 1,
    "balance": 2,
    "unsettled_interest": 3,
    "available_balance": 4,
    "last_change_desc": 5,
    "last_change_meta": 6,
})

LEDGER_INDEX: Final[SlotIndex] = freeze_index({
    "id": 0,
    "currency": 1,
    "wallet": 2,
    "mts": 3,
    "amount": 5,
    "balance": 6,
    "description": 8,
})


@pdc_dataclass(frozen=True, slots=True)
class WalletResponse(ResponseBase):
    """Датакласс кошелька аккаунта."""

    type: str | None = Field(default=None, description="Кошелёк: exchange, margin, funding")
    currency: str | None = Field(default=None, description="Валюта, например USD")
    balance: Decimal | None = Field(default=None, description="Баланс")
    unsettled_interest: Decimal | None = Field(default=None, description="Неурегулированные проценты")
    available_balance: Decimal | None = Field(
        default=None, description="Доступно для ордеров, вывода и переводов"
    )
    last_change_desc: str | None = Field(default=None, description="Описание последнего изменения")
    last_change_meta: JsonValue = Field(default=None, description="Метаданные последнего изменения")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def last_change(self) -> dict[str, JsonValue] | None:
        """Метаданные последнего изменения вместе с ``desc``; ``None``, если изменений не было."""
        meta = self.last_change_meta if isinstance(self.last_change_meta, dict) else {}
        merged = {**meta, "desc": self.last_change_desc}
        change = {key: value for key, value in merged.items() if value is not None}
        return change or None


@pdc_dataclass(frozen=True, slots=True)
class LedgerResponse(ResponseBase):
    """Датакласс записи журнала движения средств."""

    id: int | None = Field(default=None, description="Идентификатор записи")
    currency: str | None = Field(default=None)
    wallet: str | None = Field(default=None, description="Кошелёк: exchange, margin, funding, contribution")
    mts: Mts | None = Field(default=None)
    amount: Decimal | None = Field(default=None, description="Изменение")
    balance: Decimal | None = Field(default=None, description="Баланс после изменения")
    description: str | None = Field(default=None)


WALLET_DECODER = PositionalDecoder("wallets", WalletResponse, WALLET_INDEX)
LEDGER_DECODER = PositionalDecoder("ledgers_hist", LedgerResponse, LEDGER_INDEX)
