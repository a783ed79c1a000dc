"""Схемы платформенных эндпоинтов: статус, конфигурация, детали символов, GeoIP."""

from collections.abc import Hashable, Sequence
from decimal import Decimal
from typing import Final, TypeGuard

from pydantic import Field, JsonValue, TypeAdapter, field_validator, model_validator
from pydantic.dataclasses import dataclass as pdc_dataclass

from bitfinex_sdk.contracts.errors import SchemaIssue, SchemaValidationError
from bitfinex_sdk.enums import PlatformStatus
from bitfinex_sdk.schemas.base import Flag, ResponseBase
from bitfinex_sdk.toolkit.positional import PositionalDecoder, SlotIndex, expect_records, freeze_index, validate

PLATFORM_STATUS_INDEX: Final[SlotIndex] = freeze_index({"status": 0})


@pdc_dataclass(slots=True, frozen=True)
class PlatformStatusResponse(ResponseBase):
    """Состояние платформы; в режиме обслуживания торговлю нужно приостановить."""

    status: PlatformStatus | None = Field(default=None, description="1 - работает, 0 - обслуживание")


@pdc_dataclass(slots=True, frozen=True)
class SymbolDetailsResponse(ResponseBase):
    """Параметры торговой пары из ``v1/symbols_details``.

    В отличие от API v2, ответ v1 - объекты с именованными ключами, поэтому поля
    маппятся через ``validation_alias``; числовые строки приводятся к числам.
    """

    pair: str = Field(..., validation_alias="pair")
    price_precision: int = Field(..., description="Значащих цифр в цене", validation_alias="price_precision")
    initial_margin: Decimal = Field(..., validation_alias="initial_margin")
    minimum_margin: Decimal = Field(..., validation_alias="minimum_margin")
    maximum_order_size: Decimal = Field(..., validation_alias="maximum_order_size")
    minimum_order_size: Decimal = Field(..., validation_alias="minimum_order_size")
    expiration: str = Field(..., description="Срок экспирации или NA", validation_alias="expiration")
    margin: Flag = Field(default=False, description="Доступна маржинальная торговля", validation_alias="margin")

    @field_validator("pair", mode="before")
    @classmethod
    def _normalize_pair(cls, v: object) -> object:
        """Убирает пробелы вокруг кода пары."""
        return v.strip() if isinstance(v, str) else v


@pdc_dataclass(slots=True, frozen=True)
class GeoIpResponse(ResponseBase):
    """Геолокация IP-адреса клиента.

    Ответ приходит парой ``[ip, {…}]``: адрес и объект geoip, поля которого
    сливаются с адресом в одну запись.
    """

    ip: str = Field(..., description="IP-адрес клиента")
    country: str = Field(..., description="Код страны ISO 3166-1")
    region: str = Field(default="")
    city: str = Field(default="")
    timezone: str = Field(default="")
    eu: Flag = Field(default=False, description="Страна ЕС")
    ll: tuple[Decimal, Decimal] | None = Field(default=None, description="Широта и долгота")
    range: tuple[int, int] | None = Field(default=None, description="Диапазон адресов блока")
    metro: int | None = Field(default=None)
    area: int | None = Field(default=None, description="Радиус точности, км")

    @staticmethod
    def _is_pair(x: object) -> TypeGuard[Sequence[object]]:
        return isinstance(x, (list, tuple)) and len(x) == 2  # noqa: PLR2004

    @staticmethod
    def _is_dict(x: object) -> TypeGuard[dict[Hashable, object]]:
        return isinstance(x, dict)

    @model_validator(mode="before")
    @classmethod
    def _normalize_input(cls, data: object) -> object:
        if not cls._is_pair(data):
            return data
        ip, geoip = data
        if not cls._is_dict(geoip):
            msg = f"Ожидался объект geoip во втором слоте raw:{data}"
            raise ValueError(msg)  # noqa: TRY004
        return {**geoip, "ip": ip}


PLATFORM_STATUS_DECODER = PositionalDecoder("platform_status", PlatformStatusResponse, PLATFORM_STATUS_INDEX)
SYMBOLS_DETAILS_ADAPTER = TypeAdapter(list[SymbolDetailsResponse])
GEO_IP_ADAPTER = TypeAdapter(GeoIpResponse)
CONFIG_VALUES_ADAPTER = TypeAdapter(list[JsonValue])


def decode_geo_ip(raw: object) -> GeoIpResponse:
    return validate(GEO_IP_ADAPTER, raw, name="geo_ip")


def decode_symbols_details(raw: object) -> list[SymbolDetailsResponse]:
    return validate(SYMBOLS_DETAILS_ADAPTER, raw, name="symbols_details")


def zip_config(keys: Sequence[str], raw: object) -> dict[str, JsonValue]:
    """Сопоставить запрошенные ключи конфигурации с параллельным массивом значений.

    Биржа возвращает значения в порядке ключей запроса; проверяется только
    совпадение длин.
    """
    values = validate(CONFIG_VALUES_ADAPTER, expect_records(raw, name="config"), name="config")
    if len(values) != len(keys):
        raise SchemaValidationError(
            decoder="config",
            payload=raw,
            issues=(SchemaIssue(path="", expected=f"array[{len(keys)}]", received=f"array[{len(values)}]"),),
        )
    return dict(zip(keys, values, strict=True))
