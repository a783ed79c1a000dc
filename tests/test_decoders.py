import pytest

from bitfinex_sdk.contracts.errors import SchemaValidationError
from bitfinex_sdk.schemas.account import PERMISSION_DECODER, USER_INFO_DECODER
from bitfinex_sdk.schemas.balance import LEDGER_DECODER, WALLET_DECODER
from bitfinex_sdk.schemas.funding import (
    FUNDING_AUTO_DECODER,
    FUNDING_AUTO_STATUS_DECODER,
    FUNDING_CREDIT_DECODER,
    FUNDING_INFO_DECODER,
    FUNDING_LOAN_TRADE_DECODER,
    FUNDING_OFFER_DECODER,
    NOTIFICATION_DECODER,
)
from bitfinex_sdk.schemas.market import (
    CANDLE_DECODER,
    FUNDING_STATS_DECODER,
    FUNDING_TRADE_DECODER,
    TRADING_TRADE_DECODER,
)
from bitfinex_sdk.schemas.platform import PLATFORM_STATUS_DECODER
from bitfinex_sdk.schemas.ticker import FUNDING_TICKER_DECODER, TICKER_HIST_DECODER, TRADING_TICKER_DECODER
from bitfinex_sdk.toolkit.positional import Nested

MTS = 1700000000000


def user_info_record() -> list:
    record: list = [None] * 55
    slots = {
        0: 123, 1: "user@example.com", 2: "user", 3: MTS, 4: 1, 5: 2, 7: "UTC", 8: "en", 9: "bitfinex",
        10: 1, 14: MTS, 15: 7, 16: 8, 17: 1, 18: 0, 19: 1, 21: 0, 22: 1, 23: 0, 26: ["otp"],
        28: 0, 29: 1, 30: 0, 31: 0, 38: 1, 39: 0, 44: MTS, 47: 3, 49: ["VG"], 50: ["VG"],
        51: "individual", 54: 0,
    }
    for slot, value in slots.items():
        record[slot] = value
    return record


# (декодер, запись со значениями во всех объявленных слотах, путь к числовому слоту)
CASES = [
    (
        TRADING_TICKER_DECODER,
        ["tBTCUSD", 27000.5, 12.25, 27001.5, 8.5, -150.0, -0.0055, 27000.0, 1500.75, 27500.0, 26500.0],
        (1,),
    ),
    (
        FUNDING_TICKER_DECODER,
        [
            "fUSD", 0.0002, 0.00015, 30, 1000000, 0.0003, 2, 500000,
            -0.00001, -0.05, 0.00025, 123456789, 0.0004, 0.0001, None, None, 250000,
        ],
        (3,),
    ),
    (TICKER_HIST_DECODER, ["tBTCUSD", 27000.5, None, 27001.5, *[None] * 8, MTS], (1,)),
    (TRADING_TRADE_DECODER, [1, MTS, 0.5, 27000.5], (2,)),
    (FUNDING_TRADE_DECODER, [1, MTS, -1000, 0.0002, 2], (4,)),
    (CANDLE_DECODER, [MTS, 100, 101, 102, 99, 10.5], (1,)),
    (
        FUNDING_STATS_DECODER,
        [MTS, None, None, 0.000001, 30.5, None, None, 1000000, 500000, None, None, 1000],
        (7,),
    ),
    (PLATFORM_STATUS_DECODER, [1], (0,)),
    (WALLET_DECODER, ["funding", "USD", 1000, 0, 900, "Deposit", {"reason": "TRANSFER"}], (2,)),
    (LEDGER_DECODER, [71, "USD", "funding", MTS, None, -5, 995, None, "Margin Funding Payment"], (5,)),
    (PERMISSION_DECODER, ["funding", 1, 0], (1,)),
    (USER_INFO_DECODER, user_info_record(), (0,)),
    (
        FUNDING_OFFER_DECODER,
        [41, "fUSD", MTS, MTS, 1000, 1000, "LIMIT", None, None, 0, "ACTIVE",
         None, None, None, 0.0002, 2, 0, 0, None, 1],
        (14,),
    ),
    (
        FUNDING_CREDIT_DECODER,
        [51, "fUSD", 1, MTS, MTS, 500, 0, "ACTIVE", "FIXED", None, None, 0.0002,
         2, MTS, MTS, 0, 0, None, 1, None, 0, "tBTCUSD"],
        (5,),
    ),
    (FUNDING_LOAN_TRADE_DECODER, [61, "fUSD", MTS, 41, 500, 0.0002, 2], (6,)),
    (FUNDING_INFO_DECODER, [None, "fUSD", [0.00025, 0.0005, 2.5, 30]], (2, 0)),
    (FUNDING_AUTO_STATUS_DECODER, ["USD", 2, 0.0002, 1000], (1,)),
    (
        FUNDING_AUTO_DECODER,
        [MTS, "fa-req", 42, None, ["USD", 2, 0.0002, 1000], 0, "SUCCESS", "Auto-renew enabled"],
        (2,),
    ),
    (
        NOTIFICATION_DECODER,
        [MTS, "foc_all-req", None, None, None, None, "SUCCESS", "All offers cancelled"],
        (0,),
    ),
]
IDS = [decoder.name for decoder, _, _ in CASES]


def declared_slots(index) -> set[int]:
    """Слоты верхнего уровня, на которые ссылается таблица индексов."""
    slots: set[int] = set()
    for slot in index.values():
        if isinstance(slot, Nested):
            slots |= declared_slots(slot.index) if slot.slot is None else {slot.slot}
        else:
            slots.add(slot)
    return slots


def declared_values(obj, index):
    for name, slot in index.items():
        if isinstance(slot, Nested) and slot.flatten:
            yield from ((sub, getattr(obj, sub)) for sub in slot.index)
        else:
            yield name, getattr(obj, name)


def values_outside_first_slot(obj, index):
    for name, slot in index.items():
        if isinstance(slot, Nested):
            if slot.slot is None:
                yield from values_outside_first_slot(getattr(obj, name), slot.index)
            elif slot.flatten:
                yield from ((sub, getattr(obj, sub)) for sub in slot.index)
            else:
                yield name, getattr(obj, name)
        elif slot != 0:
            yield name, getattr(obj, name)


def with_value(record: list, path: tuple[int, ...], value: object) -> list:
    head, *rest = path
    copy = list(record)
    copy[head] = with_value(copy[head], tuple(rest), value) if rest else value
    return copy


@pytest.mark.parametrize(("decoder", "record", "numeric"), CASES, ids=IDS)
class TestEveryDecoder:
    def test_wrong_type_is_rejected(self, decoder, record, numeric):
        with pytest.raises(SchemaValidationError) as exc:
            decoder.decode(with_value(record, numeric, "x"))
        assert exc.value.decoder == decoder.name
        assert exc.value.issues

    def test_declared_slots_only(self, decoder, record, numeric):
        decoded = decoder.decode(record)
        assert all(value is not None for _, value in declared_values(decoded, decoder.index))

        declared = declared_slots(decoder.index)
        noisy = [value if slot in declared else "junk" for slot, value in enumerate(record)]
        assert decoder.decode([*noisy, "junk", 0]) == decoded

    def test_record_cut_after_first_slot(self, decoder, record, numeric):
        decoded = decoder.decode(record[:1])
        leftovers = dict(values_outside_first_slot(decoded, decoder.index))
        assert all(value is None for value in leftovers.values()), leftovers
