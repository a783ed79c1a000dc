"""Транспорт REST API Bitfinex на базе ``httpx.AsyncClient``.

Публичные запросы уходят ``GET`` на ``public_url`` (пути ``v1/`` есть только на
``auth_url``), аутентифицированные - ``POST`` на ``auth_url`` с JSON-телом и
заголовками подписи. Тело сериализуется один раз: подписывается ровно та
строка, что отправляется.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Final, final, override

import httpx
import orjson

from bitfinex_sdk.contracts.errors import CredentialsMissingError, ErrorCode, TransportError, is_error_payload
from bitfinex_sdk.contracts.ports.transport import TransportPort
from bitfinex_sdk.schemas.base import compact
from bitfinex_sdk.toolkit.signer import DEFAULT_NONCE, NonceFactory

if TYPE_CHECKING:
    from pydantic import JsonValue

    from bitfinex_sdk.contracts.ports.signer import SignerPort
    from bitfinex_sdk.contracts.ports.transport import BitfinexClientConfig, HttpMethod

logger = logging.getLogger(__name__)

LEGACY_PREFIX: Final = "v1/"
HTTP_SERVER_ERROR: Final = 500
DETAIL_LIMIT: Final = 200


@final
class HttpxTransport(TransportPort):
    """Реализация ``TransportPort`` поверх ``httpx``."""

    def __init__(
        self,
        config: BitfinexClientConfig,
        signer: SignerPort | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        nonce: NonceFactory | None = None,
    ) -> None:
        """Создать транспорт.

        Параметры
        ----------
        config: BitfinexClientConfig
            Адреса API и тайм-аут.
        signer: SignerPort | None
            Подпись аутентифицированных запросов; без неё доступны только публичные вызовы.
        client: httpx.AsyncClient | None
            Готовый HTTP-клиент (например, с ``httpx.MockTransport`` в тестах).
            Переданный клиент транспорт не закрывает.
        nonce: NonceFactory | None
            Источник nonce; по умолчанию общий для процесса ``DEFAULT_NONCE``.
        """
        self._public_url = httpx.URL(config.public_url)
        self._auth_url = httpx.URL(config.auth_url)
        self._signer = signer
        self._nonce = nonce or DEFAULT_NONCE
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout)

    def _url(self, path: str, *, auth: bool) -> httpx.URL:
        if auth or path.startswith(LEGACY_PREFIX):
            return self._auth_url.join(path)
        return self._public_url.join(path)

    @override
    async def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        query: Mapping[str, JsonValue] | None = None,
        body: Mapping[str, JsonValue] | None = None,
        auth: bool = False,
    ) -> JsonValue:
        url = self._url(path, auth=auth)
        params = compact(query or {})
        headers: dict[str, str] = {}
        content: bytes | None = None

        if auth:
            if self._signer is None:
                raise CredentialsMissingError
            body_json = orjson.dumps(compact(body or {})).decode()
            headers = {
                "content-type": "application/json",
                **self._signer.headers(path, self._nonce(), body_json),
            }
            content = body_json.encode()
        elif body:
            content = orjson.dumps(compact(body))
            headers["content-type"] = "application/json"

        logger.debug("Bitfinex %s %s params=%s", method, url, params)
        try:
            response = await self._client.request(method, url, params=params, headers=headers, content=content)
        except httpx.TimeoutException as e:
            raise TransportError(error_code=ErrorCode.TIMEOUT, detail=f"{method} {path}: {e!r}") from e
        except httpx.TransportError as e:
            raise TransportError(error_code=ErrorCode.NETWORK, detail=f"{method} {path}: {e!r}") from e

        return self._payload(response, path)

    @staticmethod
    def _payload(response: httpx.Response, path: str) -> JsonValue:
        status = response.status_code
        try:
            payload: JsonValue = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise TransportError(
                error_code=ErrorCode.HTTP_STATUS,
                retryable=status >= HTTP_SERVER_ERROR,
                status=status,
                detail=f"{path}: тело ответа не JSON: {response.text[:DETAIL_LIMIT]!r}",
            ) from e

        logger.debug("Bitfinex %s ответ HTTP %s", path, status)
        # структурированную ошибку биржи разбирает ядро клиента
        if response.is_success or is_error_payload(payload):
            return payload
        raise TransportError(
            error_code=ErrorCode.HTTP_STATUS,
            retryable=status >= HTTP_SERVER_ERROR,
            status=status,
            detail=f"{path}: HTTP {status}",
            payload=payload,
        )

    @override
    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
