"""Подпись аутентифицированных запросов Bitfinex.

Подпись ключом API: ``bfx-signature`` = HMAC-SHA384 (hex) от строки
``/api/{path}{nonce}{body_json}`` секретом ключа. Сессионный токен
передаётся заголовком ``bfx-token`` без подписи.
"""

import hashlib
import hmac
import time
from threading import Lock
from typing import final, override

from bitfinex_sdk.contracts.errors import CredentialsMissingError
from bitfinex_sdk.contracts.ports.signer import SignerPort
from bitfinex_sdk.contracts.ports.transport import BitfinexClientConfig


class NonceFactory:
    """Источник строго возрастающих nonce (микросекунды Unix).

    Если часы не сдвинулись с прошлого вызова, значение увеличивается на единицу,
    поэтому nonce не повторяется в пределах процесса. Потокобезопасен.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = Lock()

    def __call__(self) -> str:
        with self._lock:
            now = time.time_ns() // 1000
            self._last = max(now, self._last + 1)
            return str(self._last)


# общий для процесса: клиенты с одним ключом не должны повторять nonce
DEFAULT_NONCE = NonceFactory()


@final
class HmacSigner(SignerPort):
    """Подпись парой ``api_key``/``api_secret``."""

    def __init__(self, api_key: str, api_secret: str) -> None:
        self._api_key = api_key
        self._secret = api_secret.encode()

    def signature(self, path: str, nonce: str, body_json: str) -> str:
        payload = f"/api/{path}{nonce}{body_json}"
        return hmac.new(self._secret, payload.encode(), hashlib.sha384).hexdigest()

    @override
    def headers(self, path: str, nonce: str, body_json: str) -> dict[str, str]:
        return {
            "bfx-apikey": self._api_key,
            "bfx-nonce": nonce,
            "bfx-signature": self.signature(path, nonce, body_json),
        }


@final
class TokenSigner(SignerPort):
    """Авторизация сессионным токеном ``auth_token``."""

    def __init__(self, auth_token: str) -> None:
        self._token = auth_token

    @override
    def headers(self, path: str, nonce: str, body_json: str) -> dict[str, str]:
        return {"bfx-nonce": nonce, "bfx-token": self._token}


def build_signer(config: BitfinexClientConfig) -> SignerPort | None:
    """Выбрать способ подписи по конфигурации; ключ API приоритетнее токена.

    Возвращает ``None``, если учётных данных нет: такой клиент может выполнять
    только публичные вызовы.
    """
    if not config.has_credentials:
        if config.api_key or config.api_secret:
            # ключ без секрета (или наоборот) подписать нельзя
            raise CredentialsMissingError
        return None
    if config.api_key and config.api_secret:
        return HmacSigner(config.api_key, config.api_secret)
    return TokenSigner(config.auth_token)  # type: ignore[arg-type]
