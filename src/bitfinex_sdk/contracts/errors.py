"""Иерархия исключений SDK.

Разделение исключений по источнику:
- ``InputValidationError`` - параметры вызова отклонены до отправки запроса;
- ``SchemaValidationError`` - ответ биржи не соответствует позиционному контракту;
- ``UpstreamError`` - биржа вернула структурированную ошибку ``["error", code, message]``;
- ``TransportError`` - сбой сети или HTTP-уровня.

Экземпляры ошибок не изменяются после создания: контекст вызова прикрепляется
созданием копии (см. ``SdkError.with_context``).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Self

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pydantic import ValidationError

ERROR_MARKER = "error"


class ErrorCode(Enum):
    """Коды ошибок SDK."""

    UNKNOWN = "unknown"
    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    INPUT_VALIDATION = "input_validation"
    SCHEMA_VALIDATION = "schema_validation"
    UPSTREAM = "upstream"
    CREDENTIALS_MISSING = "credentials_missing"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Неизменяемый контекст публичного вызова SDK.

    call: имя метода клиента, params: параметры вызова (без ``None``).
    """

    call: str | None = None
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        """Зафиксировать параметры в неизменяемом представлении."""
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))


@dataclass(frozen=True, slots=True)
class SchemaIssue:
    """Одна причина отказа валидации: путь, ожидаемый вид значения, полученное значение."""

    path: str
    expected: str
    received: Any

    def __str__(self) -> str:
        """Вернуть компактное представление причины."""
        return f"{self.path or '<root>'}: ожидалось {self.expected}, получено {self.received!r}"


def issues_from_validation(exc: ValidationError, *, prefix: str = "") -> tuple[SchemaIssue, ...]:
    """Преобразовать ``pydantic.ValidationError`` в кортеж ``SchemaIssue``."""
    issues: list[SchemaIssue] = []
    for err in exc.errors(include_url=False):
        path = ".".join(str(part) for part in err["loc"])
        if prefix:
            path = f"{prefix}.{path}" if path else prefix
        issues.append(SchemaIssue(path=path, expected=err["type"], received=err.get("input")))
    return tuple(issues)


@dataclass(slots=True, kw_only=True)
class SdkError(Exception):
    """Базовая ошибка SDK.

    Атрибуты
    ---------
    error_code: ErrorCode
        Машиночитаемый код класса ошибки.
    retryable: bool
        Признак того, что повтор операции имеет смысл (сам SDK повторов не делает).
    context: ErrorContext | None
        Контекст публичного вызова, в котором возникла ошибка.
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    retryable: bool = False
    context: ErrorContext | None = None

    def with_context(self, context: ErrorContext) -> Self:
        """Вернуть копию ошибки с прикреплённым контекстом вызова."""
        return dataclasses.replace(self, context=context)

    @property
    def call(self) -> str | None:
        """Имя вызова SDK, если контекст прикреплён."""
        return self.context.call if self.context is not None else None

    def __str__(self) -> str:
        """Вернуть человекочитаемое представление ошибки."""
        return f"Ошибка SDK [{self.error_code.value}] в вызове {self.call}"


@dataclass(slots=True, kw_only=True)
class InputValidationError(SdkError):
    """Параметры вызова не прошли входную схему; запрос не отправлялся."""

    issues: tuple[SchemaIssue, ...] = ()
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Установить код ошибки и зафиксировать параметры."""
        self.params = MappingProxyType(dict(self.params))
        self.error_code = ErrorCode.INPUT_VALIDATION

    @classmethod
    def from_validation(cls, exc: ValidationError, params: Mapping[str, Any]) -> InputValidationError:
        """Построить ошибку из ``pydantic.ValidationError`` входной схемы."""
        return cls(issues=issues_from_validation(exc), params=params)

    def __str__(self) -> str:
        """Вернуть человекочитаемое представление ошибки."""
        details = "; ".join(str(issue) for issue in self.issues)
        return f"Некорректные параметры вызова {self.call}: {details}"


@dataclass(slots=True, kw_only=True)
class SchemaValidationError(SdkError):
    """Ответ биржи не соответствует ожидаемой схеме декодера.

    decoder: имя декодера, payload: исходный фрагмент ответа, issues: причины отказа.
    """

    decoder: str
    payload: Any = None
    issues: tuple[SchemaIssue, ...] = ()

    def __post_init__(self) -> None:
        """Установить код ошибки для нарушения схемы ответа."""
        self.error_code = ErrorCode.SCHEMA_VALIDATION

    def __str__(self) -> str:
        """Вернуть человекочитаемое представление ошибки."""
        details = "; ".join(str(issue) for issue in self.issues)
        return f"Ответ не соответствует схеме {self.decoder}: {details} raw:{self.payload!r}"


@dataclass(slots=True, kw_only=True)
class UpstreamError(SdkError):
    """Биржа вернула структурированную ошибку ``["error", code, message]``."""

    upstream_code: int | None = None
    upstream_message: str = ""
    payload: Any = None

    def __post_init__(self) -> None:
        """Установить код ошибки для ошибки биржи."""
        self.error_code = ErrorCode.UPSTREAM

    @classmethod
    def from_payload(cls, payload: list[Any]) -> UpstreamError:
        """Построить ошибку из полезной нагрузки вида ``["error", code, message]``."""
        code = payload[1] if len(payload) > 1 else None
        message = payload[2] if len(payload) > 2 else ""  # noqa: PLR2004
        return cls(
            upstream_code=code if isinstance(code, int) else None,
            upstream_message=str(message),
            payload=payload,
        )

    def __str__(self) -> str:
        """Вернуть человекочитаемое представление ошибки."""
        return f"({self.upstream_code}) {self.upstream_message}"


@dataclass(slots=True, kw_only=True)
class TransportError(SdkError):
    """Сбой сети или HTTP-уровня; повтор допустим на усмотрение вызывающего кода."""

    error_code: ErrorCode = ErrorCode.NETWORK
    retryable: bool = True
    detail: str = ""
    status: int | None = None
    payload: Any = None

    def __str__(self) -> str:
        """Вернуть человекочитаемое представление ошибки."""
        status = f" HTTP {self.status}" if self.status is not None else ""
        return f"Сбой транспорта [{self.error_code.value}]{status}: {self.detail}"


@dataclass(slots=True, kw_only=True)
class CredentialsMissingError(SdkError):
    """Аутентифицированный вызов без ключей API или токена."""

    def __post_init__(self) -> None:
        """Установить код ошибки для отсутствующих учётных данных."""
        self.error_code = ErrorCode.CREDENTIALS_MISSING

    def __str__(self) -> str:
        """Вернуть человекочитаемое представление ошибки."""
        return f"Для вызова {self.call} нужны api_key/api_secret или auth_token"


@dataclass(slots=True, kw_only=True)
class UnknownSdkError(SdkError):
    """Неопознанная ошибка внешней библиотеки."""

    detail: str = ""

    def __str__(self) -> str:
        """Вернуть человекочитаемое представление ошибки."""
        return f"Неизвестная ошибка в вызове {self.call}: {self.detail}"


def is_error_payload(payload: object) -> bool:
    """Проверить, является ли ответ структурированной ошибкой биржи."""
    return isinstance(payload, list) and len(payload) > 0 and payload[0] == ERROR_MARKER
