"""Схемы аккаунта: права ключа API и сведения о пользователе."""

from typing import Final

from pydantic import Field
from pydantic.dataclasses import dataclass as pdc_dataclass

from bitfinex_sdk.schemas.base import Flag, Mts, ResponseBase
from bitfinex_sdk.toolkit.positional import Nested, PositionalDecoder, SlotIndex, freeze_index

PERMISSION_INDEX: Final[SlotIndex] = freeze_index({
    "scope": 0,
    "read": 1,
    "write": 2,
})

# Сведения о пользователе приходят одной плоской записью; подзаписи собираются
# из её же слотов.
USER_INFO_INDEX: Final[SlotIndex] = freeze_index({
    "id": 0,
    "email": 1,
    "username": 2,
    "mts_account_create": 3,
    "timezone": 7,
    "locale": 8,
    "company": 9,
    "ppt_enabled": 21,
    "competition_enabled": 23,
    "modes_2fa": 26,
    "time_last_login": 44,
    "comp_countries": 49,
    "comp_countries_resid": 50,
    "compl_account_type": 51,
    "verification": Nested({"verified": 4, "level": 5, "email": 10, "level_submitted": 47}),
    "master_account": Nested({
        "mts_create": 14,
        "group_id": 15,
        "id": 16,
        "inherit_verification": 17,
        "is_group_master": 18,
        "group_withdraw_enabled": 19,
    }),
    "merchant": Nested({"enabled": 22, "is_enterprise": 54}),
    "securities": Nested({
        "is_master": 28,
        "enabled": 29,
        "is_investor_accredited": 30,
        "is_el_salvador": 31,
    }),
    "ctx_switch": Nested({"allow_disable": 38, "disabled": 39}),
})


@pdc_dataclass(frozen=True, slots=True)
class PermissionResponse(ResponseBase):
    """Права ключа API в одной области (scope)."""

    scope: str | None = Field(default=None, description="Область: account, orders, funding, ...")
    read: Flag | None = Field(default=None)
    write: Flag | None = Field(default=None)


@pdc_dataclass(frozen=True, slots=True)
class VerificationResponse(ResponseBase):
    verified: Flag | None = Field(default=None, description="Пройдена проверка KYC")
    level: int | None = Field(default=None)
    email: Flag | None = Field(default=None, description="Email подтверждён")
    level_submitted: int | None = Field(default=None, description="Наивысший поданный уровень проверки")


@pdc_dataclass(frozen=True, slots=True)
class MasterAccountResponse(ResponseBase):
    """Сведения о мастер-аккаунте, если аккаунт является субаккаунтом."""

    mts_create: Mts | None = Field(default=None)
    group_id: int | None = Field(default=None)
    id: int | None = Field(default=None)
    inherit_verification: Flag | None = Field(default=None)
    is_group_master: Flag | None = Field(default=None)
    group_withdraw_enabled: Flag | None = Field(default=None)


@pdc_dataclass(frozen=True, slots=True)
class MerchantResponse(ResponseBase):
    enabled: Flag | None = Field(default=None)
    is_enterprise: Flag | None = Field(default=None)


@pdc_dataclass(frozen=True, slots=True)
class SecuritiesResponse(ResponseBase):
    is_master: Flag | None = Field(default=None, description="У аккаунта есть securities-субаккаунт")
    enabled: Flag | None = Field(default=None)
    is_investor_accredited: Flag | None = Field(default=None)
    is_el_salvador: Flag | None = Field(default=None)


@pdc_dataclass(frozen=True, slots=True)
class CtxSwitchResponse(ResponseBase):
    """Переключение контекста мастер-аккаунтом в этот аккаунт."""

    allow_disable: Flag | None = Field(default=None)
    disabled: Flag | None = Field(default=None)


@pdc_dataclass(frozen=True, slots=True)
class UserInfoResponse(ResponseBase):
    """Датакласс сведений о пользователе ``v2/auth/r/info/user``."""

    id: int | None = Field(default=None, description="Идентификатор аккаунта")
    email: str | None = Field(default=None)
    username: str | None = Field(default=None)
    mts_account_create: Mts | None = Field(default=None)
    timezone: str | None = Field(default=None)
    locale: str | None = Field(default=None)
    company: str | None = Field(default=None, description="Площадка регистрации: bitfinex, eosfinex")
    ppt_enabled: Flag | None = Field(default=None, description="Аккаунт бумажной торговли")
    competition_enabled: Flag | None = Field(default=None)
    modes_2fa: list[str] | None = Field(default=None, description="Включённые режимы 2FA: u2f, otp")
    time_last_login: Mts | None = Field(default=None)
    comp_countries: list[str] | None = Field(default=None, description="Страны по данным проверки")
    comp_countries_resid: list[str] | None = Field(default=None, description="Страны проживания")
    compl_account_type: str | None = Field(default=None, description="individual или corporate")
    verification: VerificationResponse | None = Field(default=None)
    master_account: MasterAccountResponse | None = Field(default=None)
    merchant: MerchantResponse | None = Field(default=None)
    securities: SecuritiesResponse | None = Field(default=None)
    ctx_switch: CtxSwitchResponse | None = Field(default=None)


PERMISSION_DECODER = PositionalDecoder("permissions", PermissionResponse, PERMISSION_INDEX)
USER_INFO_DECODER = PositionalDecoder("user_info", UserInfoResponse, USER_INFO_INDEX)


def decode_permissions(raw: object) -> dict[str, PermissionResponse]:
    """Собрать права в словарь ``{scope: PermissionResponse}``; записи без scope отбрасываются."""
    return {perm.scope: perm for perm in PERMISSION_DECODER.decode_many(raw) if perm.scope is not None}
