"""Граница SDK: перевод внешних исключений в ошибки SDK.

Любая ошибка, покидающая публичный вызов клиента, является ``SdkError`` и несёт
контекст вызова (имя метода и его параметры без ``None``). Исключения httpx и
pydantic переводятся базовыми правилами; поверх них можно зарегистрировать
собственные правила через ``ErrorMapper.register``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextvars import ContextVar
from functools import wraps
from threading import RLock
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from bitfinex_sdk.contracts.errors import (
    ErrorCode,
    ErrorContext,
    SchemaValidationError,
    SdkError,
    TransportError,
    UnknownSdkError,
    issues_from_validation,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

logger = logging.getLogger(__name__)

type ErrorRule = Callable[[BaseException, ErrorContext], SdkError | None]

HTTP_SERVER_ERROR = 500


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _timeout_rule(exc: BaseException, ctx: ErrorContext) -> SdkError | None:
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return TransportError(error_code=ErrorCode.TIMEOUT, detail=_describe(exc))
    return None


def _http_status_rule(exc: BaseException, ctx: ErrorContext) -> SdkError | None:
    if not isinstance(exc, httpx.HTTPStatusError):
        return None
    status = exc.response.status_code
    return TransportError(
        error_code=ErrorCode.HTTP_STATUS,
        retryable=status >= HTTP_SERVER_ERROR,
        status=status,
        detail=_describe(exc),
    )


def _network_rule(exc: BaseException, ctx: ErrorContext) -> SdkError | None:
    # после тайм-аутов: httpx.TimeoutException тоже наследует httpx.TransportError
    if isinstance(exc, httpx.TransportError):
        return TransportError(error_code=ErrorCode.NETWORK, detail=_describe(exc))
    return None


def _validation_rule(exc: BaseException, ctx: ErrorContext) -> SdkError | None:
    if isinstance(exc, ValidationError):
        return SchemaValidationError(decoder=ctx.call or exc.title, issues=issues_from_validation(exc))
    return None


DEFAULT_RULES: tuple[ErrorRule, ...] = (_timeout_rule, _http_status_rule, _network_rule, _validation_rule)


class ErrorMapper:
    """Перевод исключений в ``SdkError``.

    Пользовательские правила проверяются раньше базовых, в порядке регистрации.
    Повторная регистрация того же правила (по модулю и qualname) игнорируется.
    Исключение, не подошедшее ни одному правилу, становится ``UnknownSdkError``.
    """

    def __init__(self) -> None:
        self._custom: dict[tuple[str, str], ErrorRule] = {}
        self._lock = RLock()

    def register(self, rule: ErrorRule) -> None:
        """Добавить пользовательское правило."""
        key = (getattr(rule, "__module__", ""), getattr(rule, "__qualname__", repr(rule)))
        with self._lock:
            self._custom.setdefault(key, rule)

    @property
    def rules(self) -> tuple[ErrorRule, ...]:
        """Все правила в порядке применения."""
        with self._lock:
            return (*self._custom.values(), *DEFAULT_RULES)

    def translate(self, exc: BaseException, ctx: ErrorContext) -> SdkError:
        """Перевести ``exc`` в ``SdkError`` с контекстом ``ctx``."""
        mapped = next(
            (err for err in (rule(exc, ctx) for rule in self.rules) if err is not None),
            None,
        )
        if mapped is None:
            mapped = UnknownSdkError(detail=repr(exc))
        # правило могло вернуть ошибку с собственным контекстом
        return mapped if mapped.context is not None else mapped.with_context(ctx)


default_error_mapper = ErrorMapper()


_call_params: ContextVar[Mapping[str, Any] | None] = ContextVar("bitfinex_sdk_call_params", default=None)


def bind_call_params(params: Mapping[str, Any]) -> None:
    """Запомнить нормализованные параметры текущего вызова.

    Ошибка, поднятая после этого внутри ``map_sdk_errors``, получит в контексте
    именно их, а не исходные аргументы метода.
    """
    _call_params.set(params)


def _call_context(sig: inspect.Signature, name: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> ErrorContext:
    normalised = _call_params.get()
    if normalised is not None:
        return ErrorContext(call=name, params=normalised)
    try:
        bound = sig.bind_partial(*args, **kwargs)
    except TypeError:
        return ErrorContext(call=name)
    params = {key: value for key, value in bound.arguments.items() if key != "self" and value is not None}
    return ErrorContext(call=name, params=params)


def map_sdk_errors[**P, R](fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Декоратор публичного вызова клиента.

    ``SdkError`` без контекста поднимается заново копией с контекстом вызова,
    прочие исключения переводятся ``default_error_mapper``. Исходное исключение
    остаётся в ``__cause__`` и не изменяется.
    """
    sig = inspect.signature(fn)
    call = getattr(fn, "__name__", "unknown")

    @wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        token = _call_params.set(None)
        try:
            return await fn(*args, **kwargs)
        except SdkError as err:
            if err.context is not None:
                raise
            logger.debug("Вызов %s завершился ошибкой: %s", call, err)
            raise err.with_context(_call_context(sig, call, args, kwargs)) from err
        except Exception as exc:
            logger.exception("Исключение на границе SDK: %s", call)
            raise default_error_mapper.translate(exc, _call_context(sig, call, args, kwargs)) from exc
        finally:
            _call_params.reset(token)

    return wrapper
