"""Базовые схемы и примитивы приведения типов.

Все правила приведения «сырых» значений Bitfinex живут здесь и больше нигде:
- ``Mts``: миллисекунды Unix ➜ UTC-aware ``datetime`` (обратно - ``to_mts``);
- ``Flag``: ``0``/``1`` ➜ ``bool``;
- ``Code``/``RawSymbol``: коды валют, пар и символов в запросах;
- числа приводятся к ``Decimal`` стандартными средствами pydantic.
"""

from abc import ABC
from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    JsonValue,
    StringConstraints,
    field_serializer,
)
from pydantic.dataclasses import dataclass as pdc_dataclass

__all__ = [
    "Code",
    "Flag",
    "JsonValue",
    "Mts",
    "RawSymbol",
    "RequestBase",
    "ResponseBase",
    "compact",
    "to_mts",
]

CODE_PATTERN = r"^[\w:]+$"


def to_mts(value: datetime | None) -> int | None:
    """Преобразовать ``datetime`` в целые миллисекунды Unix для исходящих параметров."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def _from_mts(v: object) -> object:
    """Преобразует миллисекунды Unix к UTC‑aware datetime; прочее отдаёт pydantic."""
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float, Decimal)):
        try:
            return datetime.fromtimestamp(float(v) / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError) as e:
            msg = f"Метка времени {v!r} мс вне допустимого диапазона"
            raise ValueError(msg) from e
    return v


def _to_flag(v: object) -> object:
    # биржа передаёт флаги числами 0/1
    if isinstance(v, (int, float)) and not isinstance(v, bool) and v in (0, 1):
        return bool(v)
    return v


Mts = Annotated[datetime, BeforeValidator(_from_mts)]
Flag = Annotated[bool, BeforeValidator(_to_flag)]
Code = Annotated[str, StringConstraints(strip_whitespace=True, to_upper=True, pattern=CODE_PATTERN)]
RawSymbol = Annotated[str, StringConstraints(strip_whitespace=True, pattern=CODE_PATTERN)]


def compact(params: Mapping[str, Any]) -> dict[str, Any]:
    """Отбросить параметры со значением ``None``: такие параметры не отправляются."""
    return {key: value for key, value in params.items() if value is not None}


class RequestBase(BaseModel):
    """Базовая схема входных параметров вызова.

    Лишние ключи запрещены: именно это делает взаимоисключающие селекторы
    (``pair``/``currency``/``symbol``) строгими.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    def normalised(self) -> dict[str, Any]:
        """Параметры после валидации: без ``None``, время в мс, с построенным символом."""
        params = compact(self.model_dump(mode="json"))
        for key, value in vars(self).items():
            if isinstance(value, datetime):
                params[key] = to_mts(value)
        symbol = getattr(self, "symbol", None)
        if isinstance(symbol, str):
            params["symbol"] = symbol
        return params


@pdc_dataclass(
    config=ConfigDict(
        extra="ignore",
        populate_by_name=True,         # принимать и имена полей, и алиасы
        arbitrary_types_allowed=True,
    ),
    frozen=True
)
class ResponseBase(ABC):
    """Неизменяемая запись ответа.

    Лишние ключи при валидации из словаря игнорируются; в JSON-режиме
    ``Decimal`` сериализуется строкой.
    """

    @field_serializer("*", when_used="json")
    def _serialize_decimal(self, v: Any) -> Any:  # noqa: ANN401, PLR6301
        if isinstance(v, Decimal):
            return str(v)
        return v
