"""Порт транспорта REST API Bitfinex.

Определяет конфигурацию клиента и абстракцию «выполнить запрос», которую
реализуют адаптеры инфраструктуры. Реализация возвращает разобранное JSON-тело
ответа и не интерпретирует его содержимое: распознавание ошибок биржи и
декодирование выполняет ядро SDK.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from pydantic import JsonValue

HttpMethod = Literal["GET", "POST"]

PUBLIC_URL = "https://api-pub.bitfinex.com/"
AUTH_URL = "https://api.bitfinex.com/"


@dataclass
class BitfinexClientConfig:
    """Конфигурация клиента Bitfinex.

    Для аутентифицированных вызовов нужна пара ``api_key``/``api_secret`` либо
    ``auth_token``; публичные вызовы работают без учётных данных.
    """

    api_key: str | None = None
    api_secret: str | None = None
    auth_token: str | None = None
    public_url: str = PUBLIC_URL
    auth_url: str = AUTH_URL
    timeout: float = 30.0

    @property
    def has_credentials(self) -> bool:
        """Есть ли данные для подписи аутентифицированных запросов."""
        return bool(self.api_key and self.api_secret) or bool(self.auth_token)


class TransportPort(ABC):
    """Порт «выполнить запрос».

    Реализации возвращают JSON-тело ответа для любого HTTP-статуса, если тело
    является структурированной ошибкой биржи, и поднимают ``TransportError``
    при сетевых сбоях, тайм-аутах и прочих неуспешных ответах.
    """

    @abstractmethod
    async def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        query: Mapping[str, JsonValue] | None = None,
        body: Mapping[str, JsonValue] | None = None,
        auth: bool = False,
    ) -> JsonValue:
        """Выполнить запрос ``method`` к ``path`` и вернуть разобранное JSON-тело.

        Параметры
        ----------
        method: HttpMethod
            HTTP-метод; публичные вызовы используют ``GET``, аутентифицированные - ``POST``.
        path: str
            Относительный путь, например ``v2/platform/status``.
        query: Mapping[str, JsonValue] | None
            Параметры строки запроса.
        body: Mapping[str, JsonValue] | None
            Тело аутентифицированного запроса.
        auth: bool
            Подписать запрос учётными данными клиента.
        """
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Закрыть сетевые ресурсы транспорта."""
        ...
