from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import TypeAdapter

from bitfinex_sdk.contracts.errors import SchemaValidationError
from bitfinex_sdk.schemas.account import USER_INFO_DECODER, decode_permissions
from bitfinex_sdk.schemas.balance import LEDGER_DECODER, WALLET_DECODER, WalletResponse
from bitfinex_sdk.schemas.funding import (
    FUNDING_AUTO_DECODER,
    FUNDING_CREDIT_DECODER,
    FUNDING_INFO_DECODER,
    FUNDING_LOAN_TRADE_DECODER,
    FUNDING_OFFER_DECODER,
    NOTIFICATION_DECODER,
    decode_funding_auto_status,
)

MTS = 1700000000000
MTS_DT = datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)


def positional(length: int, slots: dict[int, object]) -> list[object]:
    raw: list[object] = [None] * length
    for idx, value in slots.items():
        raw[idx] = value
    return raw


class TestWallets:
    def test_wallet_last_change_merges_desc(self):
        raw = [["exchange", "USD", 100.5, 0, 100.25, "Exchange 1.0 USD for BTC", {"reason": "TRADE", "order_id": 1}]]
        (wallet,) = WALLET_DECODER.decode_many(raw)
        assert wallet.type == "exchange"
        assert wallet.available_balance == Decimal("100.25")
        assert wallet.last_change == {"reason": "TRADE", "order_id": 1, "desc": "Exchange 1.0 USD for BTC"}

    def test_wallet_last_change_drops_nulls(self):
        (wallet,) = WALLET_DECODER.decode_many([["funding", "BTC", 1, 0, 1, None, {"reason": None, "id": 5}]])
        assert wallet.last_change == {"id": 5}

    def test_wallet_without_change(self):
        (wallet,) = WALLET_DECODER.decode_many([["margin", "USD", 0, 0, None]])
        assert wallet.last_change is None
        assert wallet.available_balance is None

    def test_wallet_change_with_only_nulls(self):
        (wallet,) = WALLET_DECODER.decode_many([["funding", "USD", 1, 0, 1, None, {"reason": None}]])
        assert wallet.last_change is None
        assert TypeAdapter(WalletResponse).dump_python(wallet)["last_change"] is None


class TestLedgers:
    def test_ledger(self):
        raw = [[123, "USD", "exchange", MTS, None, -5.5, 94.5, None, "Trading fees for 0.1 BTC"]]
        (entry,) = LEDGER_DECODER.decode_many(raw)
        assert entry.id == 123
        assert entry.mts == MTS_DT
        assert entry.amount == Decimal("-5.5")
        assert entry.balance == Decimal("94.5")
        assert entry.description == "Trading fees for 0.1 BTC"


class TestPermissions:
    def test_permissions_map(self):
        perms = decode_permissions([["account", 1, 0], ["funding", 1, 1]])
        assert set(perms) == {"account", "funding"}
        assert perms["account"].read is True
        assert perms["account"].write is False
        assert perms["funding"].write is True

    def test_permissions_bad_flag(self):
        with pytest.raises(SchemaValidationError):
            decode_permissions([["account", "maybe", 0]])


class TestUserInfo:
    raw = positional(
        55,
        {
            0: 42,
            1: "user@example.com",
            2: "user",
            3: MTS,
            4: 1,
            5: 2,
            7: "Europe/Moscow",
            8: "en",
            9: "bitfinex",
            10: 1,
            14: None,
            15: None,
            17: 0,
            18: 0,
            19: 0,
            21: 0,
            22: 0,
            23: 0,
            26: ["otp"],
            28: 0,
            29: 0,
            30: 0,
            31: 0,
            38: 1,
            39: 0,
            44: MTS,
            47: 3,
            49: ["US", "DE"],
            50: ["DE"],
            51: "individual",
            54: 0,
        },
    )

    def test_top_level(self):
        info = USER_INFO_DECODER.decode(self.raw)
        assert info.id == 42
        assert info.email == "user@example.com"
        assert info.mts_account_create == MTS_DT
        assert info.modes_2fa == ["otp"]
        assert info.comp_countries_resid == ["DE"]
        assert info.compl_account_type == "individual"
        assert info.ppt_enabled is False

    def test_nested(self):
        info = USER_INFO_DECODER.decode(self.raw)
        assert info.verification is not None
        assert info.verification.verified is True
        assert info.verification.level == 2
        assert info.verification.level_submitted == 3
        assert info.master_account is not None
        assert info.master_account.id is None
        assert info.master_account.mts_create is None
        assert info.ctx_switch is not None
        assert info.ctx_switch.allow_disable is True
        assert info.merchant is not None
        assert info.merchant.is_enterprise is False

    def test_short_record(self):
        info = USER_INFO_DECODER.decode([42, "user@example.com"])
        assert info.username is None
        assert info.verification is not None
        assert info.verification.level is None


class TestFundingRecords:
    def test_offer(self):
        raw = positional(
            20,
            {0: 1, 1: "fUSD", 2: MTS, 3: MTS, 4: 100, 5: 150, 6: "LIMIT", 10: "ACTIVE", 14: 0.0002, 15: 2, 16: 0, 17: 0, 19: 1},
        )
        (offer,) = FUNDING_OFFER_DECODER.decode_many([raw])
        assert offer.currency == "USD"
        assert offer.amount_orig == Decimal("150")
        assert offer.period == 2
        assert offer.renew is True
        assert offer.flags is None

    def test_credit(self):
        raw = positional(
            22,
            {
                0: 7, 1: "fUSD", 2: 1, 3: MTS, 4: MTS, 5: 50, 6: {"x": 1}, 7: "ACTIVE", 8: "FIXED",
                11: 0.0002, 12: 30, 13: MTS, 14: None, 15: 0, 16: 0, 18: 0, 20: 0, 21: "tBTCUSD",
            },
        )
        credit = FUNDING_CREDIT_DECODER.decode(raw)
        assert credit.side == 1
        assert credit.flags == {"x": 1}
        assert credit.rate_type == "FIXED"
        assert credit.mts_opening == MTS_DT
        assert credit.mts_last_payout is None
        assert credit.position_pair == "tBTCUSD"

    def test_loan_trade(self):
        trade = FUNDING_LOAN_TRADE_DECODER.decode([9, "fUST", MTS, 11, -25, 0.0003, 7])
        assert trade.currency == "UST"
        assert trade.offer_id == 11
        assert trade.period == 7

    def test_funding_info_flattens_stats(self):
        info = FUNDING_INFO_DECODER.decode(["sym", "fUSD", [0.00025, 0.0005, 2.5, 30]])
        assert info.currency == "USD"
        assert info.yield_lend == Decimal("0.0005")
        assert info.duration_loan == Decimal("2.5")
        assert info.duration_lend == Decimal("30")

    def test_funding_info_without_stats(self):
        info = FUNDING_INFO_DECODER.decode(["sym", "fUSD"])
        assert info.yield_loan is None

    def test_auto_status(self):
        status = decode_funding_auto_status(["USD", 2, 0, 100])
        assert status is not None
        assert status.currency == "USD"
        assert status.rate == 0
        assert status.amount == Decimal("100")

    @pytest.mark.parametrize("raw", [None, []])
    def test_auto_status_not_configured(self, raw):
        assert decode_funding_auto_status(raw) is None

    def test_auto_write_notification(self):
        raw = [MTS, "fa-req", None, None, ["USD", 2, 0, 0], None, "SUCCESS", "auto-renew settings updated"]
        resp = FUNDING_AUTO_DECODER.decode(raw)
        assert resp.type == "fa-req"
        assert resp.status == "SUCCESS"
        assert resp.offer is not None
        assert resp.offer.currency == "USD"
        assert resp.offer.period == 2

    def test_auto_write_without_offer(self):
        resp = FUNDING_AUTO_DECODER.decode([MTS, "fa-req", None, None, None, None, "SUCCESS", "ok"])
        assert resp.offer is None

    def test_cancel_all_notification(self):
        raw = [MTS, "foc_all-req", None, None, [], None, "SUCCESS", "Submitted for cancellation"]
        note = NOTIFICATION_DECODER.decode(raw)
        assert note.mts == MTS_DT
        assert note.type == "foc_all-req"
        assert note.text == "Submitted for cancellation"
