"""Tests for the fan-out dispatcher."""

import asyncio
import errno

import httpx
import pytest
from pytest_mock import MockerFixture

from slackmux.core.exceptions import DestinationNotConfiguredException
from slackmux.mux.dispatcher import DeliveryOutcome, DispatchResult, MuxDispatcher, _error_code
from slackmux.mux.models import MuxConfig

URL_A = "https://hooks.example.com/a"
URL_B = "https://hooks.example.com/b"


def refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("All connection attempts failed", request=request) from ConnectionRefusedError(
        errno.ECONNREFUSED, "Connection refused"
    )


@pytest.fixture(params=[False, True], ids=["sequential", "parallel"])
def dispatcher(request: pytest.FixtureRequest, mux_config: MuxConfig, http_client: httpx.AsyncClient) -> MuxDispatcher:
    """Dispatcher in both dispatch modes."""
    return MuxDispatcher(mux_config, http_client, parallel=request.param)


@pytest.mark.asyncio
async def test_all_destinations_succeed(dispatcher: MuxDispatcher, destinations) -> None:
    """Every destination receives the unmodified body, in order."""
    endpoint = dispatcher.mux.source_endpoints["public"]
    body = {"text": "deploy finished", "channel": "#ops"}

    result = await dispatcher.dispatch("public", endpoint, body)

    assert result.error_count == 0
    assert result.error_map == {}
    assert [outcome.ok for outcome in result.outcomes] == [True, True]
    assert destinations.urls == [URL_A, URL_B]
    assert destinations.payloads() == [body, body]
    assert all(r.method == "POST" for r in destinations.requests)
    assert all(r.headers["content-type"] == "application/json" for r in destinations.requests)


@pytest.mark.asyncio
async def test_override_applied_per_directive(dispatcher: MuxDispatcher, destinations) -> None:
    """Overrides only affect their own directive."""
    endpoint = dispatcher.mux.source_endpoints["override"]

    await dispatcher.dispatch("override", endpoint, {"text": "orig", "channel": "c1"})

    assert destinations.payloads() == [
        {"text": "orig", "channel": "c1"},
        {"text": "x", "channel": "c1"},
    ]


@pytest.mark.asyncio
async def test_non_200_status_is_failure(dispatcher: MuxDispatcher, destinations) -> None:
    """Failures are collected without aborting sibling deliveries."""
    destinations.respond(URL_A, lambda r: httpx.Response(500, text="oops"))
    endpoint = dispatcher.mux.source_endpoints["public"]

    result = await dispatcher.dispatch("public", endpoint, {"text": "t"})

    assert result.error_count == 1
    assert result.error_map == {"a": "oops (status 500)"}
    assert destinations.urls == [URL_A, URL_B]


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [201, 204, 302, 404])
async def test_only_200_counts_as_success(dispatcher: MuxDispatcher, destinations, status_code: int) -> None:
    """Other 2xx statuses are failures too."""
    destinations.respond(URL_B, lambda r: httpx.Response(status_code, text="nope"))
    endpoint = dispatcher.mux.source_endpoints["public"]

    result = await dispatcher.dispatch("public", endpoint, {"text": "t"})

    assert result.error_map == {"b": f"nope (status {status_code})"}


@pytest.mark.asyncio
async def test_transport_error_is_collected(dispatcher: MuxDispatcher, destinations) -> None:
    """Connection failures carry the errno name of the underlying fault."""
    destinations.respond(URL_A, refuse)
    endpoint = dispatcher.mux.source_endpoints["public"]

    result = await dispatcher.dispatch("public", endpoint, {"text": "t"})

    assert result.error_map == {"a": "internal error ECONNREFUSED: All connection attempts failed"}
    assert destinations.urls == [URL_A, URL_B]


@pytest.mark.asyncio
async def test_internal_error_without_code(dispatcher: MuxDispatcher, destinations) -> None:
    """Faults without a code leave it empty."""

    def explode(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("boom")

    destinations.respond(URL_B, explode)
    endpoint = dispatcher.mux.source_endpoints["public"]

    result = await dispatcher.dispatch("public", endpoint, {"text": "t"})

    assert result.error_map == {"b": "internal error : boom"}


@pytest.mark.asyncio
async def test_all_failures_aggregated_in_order(dispatcher: MuxDispatcher, destinations) -> None:
    """Every failed destination appears, in configuration order."""
    destinations.respond(URL_A, lambda r: httpx.Response(400, text="invalid_payload"))
    destinations.respond(URL_B, lambda r: httpx.Response(404, text="no_service"))
    endpoint = dispatcher.mux.source_endpoints["public"]

    result = await dispatcher.dispatch("public", endpoint, {"text": "t"})

    assert result.error_count == 2
    assert list(result.error_map.items()) == [
        ("a", "invalid_payload (status 400)"),
        ("b", "no_service (status 404)"),
    ]


@pytest.mark.asyncio
async def test_unknown_destination_aborts(dispatcher: MuxDispatcher, destinations) -> None:
    """Directives before the unknown destination are delivered, later ones are not."""
    endpoint = dispatcher.mux.source_endpoints["broken"]

    with pytest.raises(DestinationNotConfiguredException) as exc_info:
        await dispatcher.dispatch("broken", endpoint, {"text": "t"})

    assert exc_info.value.destination == "missing"
    assert destinations.urls == [URL_A]


@pytest.mark.asyncio
async def test_timeout_passed_per_delivery(mux_config: MuxConfig, mocker: MockerFixture) -> None:
    """A configured timeout is applied to every POST."""
    client = mocker.Mock(spec=httpx.AsyncClient)
    client.post = mocker.AsyncMock(return_value=httpx.Response(200))
    dispatcher = MuxDispatcher(mux_config, client, timeout=1.5)

    await dispatcher.dispatch("secured", mux_config.source_endpoints["secured"], {"text": "t"})

    client.post.assert_awaited_once_with(URL_A, json={"text": "t"}, timeout=1.5)


@pytest.mark.asyncio
async def test_default_timeout_left_to_client(mux_config: MuxConfig, mocker: MockerFixture) -> None:
    """Without a timeout the client's default applies."""
    client = mocker.Mock(spec=httpx.AsyncClient)
    client.post = mocker.AsyncMock(return_value=httpx.Response(200))
    dispatcher = MuxDispatcher(mux_config, client)

    await dispatcher.dispatch("secured", mux_config.source_endpoints["secured"], {"text": "t"})

    client.post.assert_awaited_once_with(URL_A, json={"text": "t"})


@pytest.mark.asyncio
async def test_parallel_deliveries_overlap(mux_config: MuxConfig, mocker: MockerFixture) -> None:
    """Parallel mode starts every delivery before any finishes."""
    started = 0
    both_started = asyncio.Event()

    async def post(url: str, **kwargs: object) -> httpx.Response:
        nonlocal started
        started += 1
        if started == 2:
            both_started.set()
        await asyncio.wait_for(both_started.wait(), timeout=1)
        return httpx.Response(200)

    client = mocker.Mock(spec=httpx.AsyncClient)
    client.post = post
    dispatcher = MuxDispatcher(mux_config, client, parallel=True)

    result = await dispatcher.dispatch("public", mux_config.source_endpoints["public"], {"text": "t"})

    assert result.error_count == 0
    assert started == 2


@pytest.mark.asyncio
async def test_repeated_dispatch_is_independent(dispatcher: MuxDispatcher, destinations) -> None:
    """Identical requests with identical responses give identical results."""
    destinations.respond(URL_B, lambda r: httpx.Response(500, text="oops"))
    endpoint = dispatcher.mux.source_endpoints["public"]

    first = await dispatcher.dispatch("public", endpoint, {"text": "t"})
    second = await dispatcher.dispatch("public", endpoint, {"text": "t"})

    assert first.error_map == second.error_map == {"b": "oops (status 500)"}


def test_dispatch_result_counts() -> None:
    """Counts and maps only include failures."""
    result = DispatchResult(outcomes=[DeliveryOutcome("a"), DeliveryOutcome("b")])

    assert result.error_count == 0
    assert result.error_map == {}


def test_error_code_from_code_attribute() -> None:
    """String codes are used as is."""
    exc = OSError("dns failure")
    wrapper = RuntimeError("wrapped")
    wrapper.code = "ENOTFOUND"  # type: ignore[attr-defined]

    assert _error_code(wrapper) == "ENOTFOUND"
    assert _error_code(exc) == ""
