"""Декодирование позиционных записей Bitfinex.

Большинство ответов API v2 - массивы без имён полей: смысл значения задаётся
только его индексом. Для каждой формы записи объявляется одна таблица
``{имя_поля: индекс}``; таблица - единственный источник истины о порядке
колонок. Индексы, которых нет в таблице, не читаются вовсе.

Правило недостающих слотов: если массив короче объявленного индекса, поле
получает значение по умолчанию (``None``). Ошибкой считается только
присутствующее значение неверного типа.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import TypeAdapter, ValidationError

from bitfinex_sdk.contracts.errors import SchemaIssue, SchemaValidationError, issues_from_validation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Nested:
    """Вложенная подзапись.

    index: таблица подзаписи; slot: индекс вложенного массива (``None`` - та же
    запись); flatten: слить поля подзаписи в родительскую запись.
    """

    index: Mapping[str, Slot]
    slot: int | None = None
    flatten: bool = False


type Slot = int | Nested
type SlotIndex = Mapping[str, Slot]


class ShapeError(ValueError):
    """Значение на месте записи не является массивом."""

    def __init__(self, path: str, received: object) -> None:
        super().__init__(f"{path or '<root>'}: ожидался массив")
        self.issue = SchemaIssue(path=path, expected="array", received=received)


def is_record(value: object) -> bool:
    return isinstance(value, (list, tuple))


def freeze_index(index: SlotIndex) -> SlotIndex:
    """Вернуть неизменяемую копию таблицы индексов."""
    return MappingProxyType(dict(index))


def pick(raw: object, index: SlotIndex, *, path: str = "") -> dict[str, Any]:
    """Собрать словарь ``{имя: значение}`` из позиционной записи по таблице ``index``.

    Слоты за пределами массива пропускаются, поэтому поле получает значение по
    умолчанию схемы. Пустой или отсутствующий вложенный слот даёт ``None``.
    """
    if not is_record(raw):
        raise ShapeError(path, raw)
    record: Sequence[Any] = raw  # type: ignore[assignment]
    values: dict[str, Any] = {}
    for name, slot in index.items():
        if isinstance(slot, Nested):
            if slot.slot is None:
                source: object = record
            elif slot.slot < len(record):
                source = record[slot.slot]
            else:
                source = None
            if source is None:
                if not slot.flatten:
                    values[name] = None
                continue
            sub_path = path if slot.slot is None else f"{path}[{slot.slot}]"
            sub = pick(source, slot.index, path=sub_path)
            if slot.flatten:
                values.update(sub)
            else:
                values[name] = sub
        elif slot < len(record):
            values[name] = record[slot]
    return values


def validate[T](adapter: TypeAdapter[T], raw: object, *, name: str) -> T:
    """Проверить ``raw`` схемой ``adapter``; при отказе поднять ``SchemaValidationError``."""
    try:
        return adapter.validate_python(raw)
    except ValidationError as e:
        raise SchemaValidationError(decoder=name, payload=raw, issues=issues_from_validation(e)) from e


def expect_records(raw: object, *, name: str) -> list[Any]:
    """Убедиться, что пакетный ответ - массив записей."""
    if not isinstance(raw, list):
        raise SchemaValidationError(
            decoder=name,
            payload=raw,
            issues=(SchemaIssue(path="", expected="array", received=raw),),
        )
    return raw


class PositionalDecoder[T]:
    """Декодер одной формы позиционной записи.

    Применяет таблицу индексов, затем схему ``schema`` (pydantic dataclass), в
    которой живут все приведения типов и производные поля.
    """

    def __init__(self, name: str, schema: type[T], index: SlotIndex) -> None:
        self.name = name
        self.schema = schema
        self.index = freeze_index(index)
        self._adapter: TypeAdapter[T] = TypeAdapter(schema)

    def __repr__(self) -> str:
        return f"PositionalDecoder({self.name!r}, {self.schema.__name__})"

    def decode(self, raw: object) -> T:
        """Декодировать одну запись."""
        try:
            return self._adapter.validate_python(pick(raw, self.index))
        except ShapeError as e:
            raise SchemaValidationError(decoder=self.name, payload=raw, issues=(e.issue,)) from e
        except ValidationError as e:
            raise SchemaValidationError(decoder=self.name, payload=raw, issues=issues_from_validation(e)) from e

    def decode_many(self, raw: object) -> list[T]:
        """Декодировать пакет записей с сохранением порядка; сбой любой записи - сбой всего пакета."""
        records = expect_records(raw, name=self.name)
        result: list[T] = []
        for position, record in enumerate(records):
            try:
                result.append(self._adapter.validate_python(pick(record, self.index)))
            except ShapeError as e:
                issue = SchemaIssue(path=f"[{position}]", expected=e.issue.expected, received=e.issue.received)
                raise SchemaValidationError(decoder=self.name, payload=record, issues=(issue,)) from e
            except ValidationError as e:
                issues = issues_from_validation(e, prefix=f"[{position}]")
                raise SchemaValidationError(decoder=self.name, payload=record, issues=issues) from e
        return result


class LengthDispatch[T]:
    """Выбор формы записи по длине массива.

    В ответе нет поля-дискриминатора, поэтому форма определяется длиной записи;
    длина, не описанная в ``decoders``, считается нарушением схемы.
    """

    def __init__(self, name: str, decoders: Mapping[int, PositionalDecoder[Any]]) -> None:
        self.name = name
        self.decoders: Mapping[int, PositionalDecoder[Any]] = MappingProxyType(dict(decoders))

    def select(self, raw: object) -> PositionalDecoder[Any]:
        """Вернуть декодер для записи ``raw`` по её длине."""
        if is_record(raw):
            decoder = self.decoders.get(len(raw))  # type: ignore[arg-type]
            if decoder is not None:
                return decoder
        expected = " | ".join(f"array[{length}]" for length in self.decoders)
        received_length = len(raw) if is_record(raw) else None  # type: ignore[arg-type]
        logger.warning("Неизвестная форма записи %s: длина %s", self.name, received_length)
        raise SchemaValidationError(
            decoder=self.name,
            payload=raw,
            issues=(SchemaIssue(path="", expected=expected, received=raw),),
        )

    def decode(self, raw: object) -> T:
        """Декодировать одну запись, выбрав форму по длине."""
        return self.select(raw).decode(raw)

    def decode_each(self, raw: object) -> list[T]:
        """Декодировать пакет, выбирая форму для каждой записи отдельно."""
        return [self.decode(record) for record in expect_records(raw, name=self.name)]

    def decode_uniform(self, raw: object) -> list[T]:
        """Декодировать пакет одной формы, определённой по первой записи; пустой пакет - ``[]``."""
        records = expect_records(raw, name=self.name)
        if not records:
            return []
        return self.select(records[0]).decode_many(records)
