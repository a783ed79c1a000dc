import asyncio
from types import MappingProxyType

import httpx
import pytest
from pydantic import TypeAdapter, ValidationError

from bitfinex_sdk.contracts.errors import (
    ErrorCode,
    ErrorContext,
    InputValidationError,
    SchemaIssue,
    SchemaValidationError,
    SdkError,
    TransportError,
    UnknownSdkError,
    UpstreamError,
    is_error_payload,
)
from bitfinex_sdk.toolkit import error_mapper
from bitfinex_sdk.toolkit.error_mapper import DEFAULT_RULES, ErrorMapper, bind_call_params, map_sdk_errors

CTX = ErrorContext(call="wallets", params={"currency": "USD"})


def validation_error() -> ValidationError:
    try:
        TypeAdapter(int).validate_python("x")
    except ValidationError as e:
        return e
    raise AssertionError("unreachable")


class TestErrorMapper:
    def test_timeout(self):
        err = ErrorMapper().translate(httpx.ReadTimeout("slow"), CTX)
        assert isinstance(err, TransportError)
        assert err.error_code == ErrorCode.TIMEOUT
        assert err.context is CTX

    def test_asyncio_timeout(self):
        err = ErrorMapper().translate(asyncio.TimeoutError(), CTX)
        assert err.error_code == ErrorCode.TIMEOUT

    def test_http_status(self):
        request = httpx.Request("GET", "https://api-pub.bitfinex.com/v2/tickers")
        response = httpx.Response(429, request=request)
        exc = httpx.HTTPStatusError("too many", request=request, response=response)
        err = ErrorMapper().translate(exc, CTX)
        assert isinstance(err, TransportError)
        assert err.status == 429
        assert err.retryable is False

    def test_network(self):
        err = ErrorMapper().translate(httpx.ConnectError("refused"), CTX)
        assert err.error_code == ErrorCode.NETWORK
        assert err.retryable is True

    def test_pydantic_validation(self):
        err = ErrorMapper().translate(validation_error(), CTX)
        assert isinstance(err, SchemaValidationError)
        assert err.decoder == "wallets"
        assert err.issues[0].received == "x"

    def test_unknown(self):
        err = ErrorMapper().translate(KeyError("boom"), CTX)
        assert isinstance(err, UnknownSdkError)
        assert "boom" in err.detail

    def test_custom_rule_first(self):
        mapper = ErrorMapper()

        def rule(exc, ctx):
            if isinstance(exc, KeyError):
                return UpstreamError(upstream_code=1, upstream_message="custom")
            return None

        mapper.register(rule)
        err = mapper.translate(KeyError("x"), CTX)
        assert isinstance(err, UpstreamError)
        assert err.context is CTX
        assert isinstance(mapper.translate(ValueError("y"), CTX), UnknownSdkError)

    def test_register_dedupes(self):
        mapper = ErrorMapper()

        def rule(exc, ctx):
            return None

        mapper.register(rule)
        mapper.register(rule)
        assert mapper.rules.count(rule) == 1
        assert mapper.rules[0] is rule
        assert mapper.rules[1:] == DEFAULT_RULES

    def test_rule_context_is_kept(self):
        mapper = ErrorMapper()
        own = ErrorContext(call="other")
        mapper.register(lambda exc, ctx: UnknownSdkError(context=own))
        assert mapper.translate(ValueError(), CTX).context is own


class _Service:
    @map_sdk_errors
    async def fails_with_sdk_error(self, currency: str | None = None, limit: int | None = None):
        raise UpstreamError(upstream_code=10020, upstream_message="limit: invalid")

    @map_sdk_errors
    async def fails_with_context(self):
        raise UnknownSdkError(context=ErrorContext(call="inner"))

    @map_sdk_errors
    async def fails_with_foreign(self, currency: str):
        raise ValueError("bad")

    @map_sdk_errors
    async def fails_after_binding(self, pair: str):
        bind_call_params({"pair": pair.strip().upper()})
        raise ValueError("bad")

    @map_sdk_errors
    async def succeeds(self, value: int) -> int:
        return value * 2


class TestMapSdkErrors:
    @pytest.mark.asyncio
    async def test_passes_result(self):
        assert await _Service().succeeds(2) == 4

    @pytest.mark.asyncio
    async def test_context_is_attached_to_a_copy(self):
        with pytest.raises(UpstreamError) as exc:
            await _Service().fails_with_sdk_error("USD")
        err = exc.value
        assert err.call == "fails_with_sdk_error"
        assert dict(err.context.params) == {"currency": "USD"}
        assert err.upstream_code == 10020
        original = err.__cause__
        assert isinstance(original, UpstreamError)
        assert original is not err
        assert original.context is None

    @pytest.mark.asyncio
    async def test_existing_context_is_kept(self):
        with pytest.raises(UnknownSdkError) as exc:
            await _Service().fails_with_context()
        assert exc.value.call == "inner"

    @pytest.mark.asyncio
    async def test_foreign_exception(self):
        with pytest.raises(UnknownSdkError) as exc:
            await _Service().fails_with_foreign(currency="BTC")
        assert exc.value.call == "fails_with_foreign"
        assert dict(exc.value.context.params) == {"currency": "BTC"}
        assert isinstance(exc.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_bound_params_replace_arguments(self):
        with pytest.raises(UnknownSdkError) as exc:
            await _Service().fails_after_binding(" btcusd ")
        assert dict(exc.value.context.params) == {"pair": "BTCUSD"}

    @pytest.mark.asyncio
    async def test_bound_params_are_reset_after_call(self):
        with pytest.raises(UnknownSdkError):
            await _Service().fails_after_binding("btcusd")
        assert error_mapper._call_params.get() is None  # noqa: SLF001


class TestErrors:
    def test_context_params_are_read_only(self):
        ctx = ErrorContext(call="ticker", params={"pair": "BTCUSD"})
        assert isinstance(ctx.params, MappingProxyType)
        with pytest.raises(TypeError):
            ctx.params["pair"] = "ETHUSD"  # type: ignore[index]

    def test_context_does_not_share_source_mapping(self):
        source = {"pair": "BTCUSD"}
        ctx = ErrorContext(call="ticker", params=source)
        source["pair"] = "ETHUSD"
        assert ctx.params["pair"] == "BTCUSD"

    def test_with_context_copies(self):
        err = TransportError(detail="refused")
        copy = err.with_context(CTX)
        assert copy is not err
        assert err.context is None
        assert copy.context is CTX
        assert copy.detail == "refused"

    def test_upstream_from_payload(self):
        err = UpstreamError.from_payload(["error", 10100, "apikey: invalid"])
        assert err.error_code == ErrorCode.UPSTREAM
        assert str(err) == "(10100) apikey: invalid"
        assert err.payload == ["error", 10100, "apikey: invalid"]

    def test_upstream_from_short_payload(self):
        err = UpstreamError.from_payload(["error"])
        assert err.upstream_code is None
        assert err.upstream_message == ""

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            (["error", 10020, "x"], True),
            (["error"], True),
            ([], False),
            ([["error"]], False),
            ({"error": 1}, False),
            ("error", False),
            (None, False),
        ],
    )
    def test_is_error_payload(self, payload, expected):
        assert is_error_payload(payload) is expected

    def test_input_validation_error(self):
        err = InputValidationError(
            issues=(SchemaIssue(path="limit", expected="less_than_equal", received=20000),),
            params={"limit": 20000},
        ).with_context(ErrorContext(call="trades_hist"))
        assert err.error_code == ErrorCode.INPUT_VALIDATION
        assert "trades_hist" in str(err)
        assert "limit" in str(err)
        assert isinstance(err.params, MappingProxyType)

    def test_schema_error_str(self):
        err = SchemaValidationError(decoder="ticker", payload=[1], issues=(SchemaIssue("", "array[11]", [1]),))
        assert "ticker" in str(err)
        assert err.retryable is False

    def test_hierarchy(self):
        for cls in (InputValidationError, SchemaValidationError, UpstreamError, TransportError, UnknownSdkError):
            assert issubclass(cls, SdkError)
