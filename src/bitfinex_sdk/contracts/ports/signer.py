from abc import ABC, abstractmethod


class SignerPort(ABC):
    """Абстракция подписи аутентифицированных запросов.

    Получает путь, одноразовый nonce и сериализованное тело запроса и
    возвращает заголовки, которые нужно добавить к запросу. Конкретные
    реализации (HMAC, токен) располагаются в ``toolkit.signer``.
    """

    @abstractmethod
    def headers(self, path: str, nonce: str, body_json: str) -> dict[str, str]:
        """Вернуть заголовки подписи для запроса.

        Параметры
        ----------
        path: str
            Относительный путь запроса без ведущего ``/``, например ``v2/auth/r/wallets``.
        nonce: str
            Строго возрастающее значение, уникальное в пределах процесса.
        body_json: str
            Тело запроса ровно в том виде, в котором оно будет отправлено.
        """
        ...
