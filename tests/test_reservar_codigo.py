from concurrent.futures import ThreadPoolExecutor

import pytest

from pdv.domain.errors import (
    ApiError,
    CodeExhausted,
    InvalidTransition,
    ReservationTransportError,
    TransportError,
)
from pdv.infra.repositories import SaleCodeApi
from pdv.usecases.reservar_codigo import ReservationState, SaleCodeReservationClient


def _client(backend, **kw):
    return SaleCodeReservationClient(SaleCodeApi(backend), **kw)


def test_acquire_next_after_last_code(backend):
    res = _client(backend).acquire()
    assert res.code == "VTA-008"
    assert res.state is ReservationState.HELD
    assert res.attempts == 1
    assert "VTA-008" in backend.reserved


def test_acquire_skips_taken_code(backend):
    backend.reserved.add("VTA-008")
    res = _client(backend).acquire()
    assert res.code == "VTA-009"
    assert res.attempts == 2


def test_first_sale_without_previous_code(make_backend):
    res = _client(make_backend(last_code=None)).acquire()
    assert res.code == "VTA-001"


def test_exhaustion_raises_after_ceiling(backend):
    backend.reserved.update({"VTA-008", "VTA-009", "VTA-010"})
    with pytest.raises(CodeExhausted) as exc:
        _client(backend, max_attempts=3).acquire()
    assert exc.value.attempts == 3
    assert exc.value.last_candidate == "VTA-010"


def test_backoff_between_conflicts(backend):
    sleeps = []
    backend.reserved.update({"VTA-008", "VTA-009"})
    res = _client(backend, backoff=0.01, sleep=sleeps.append).acquire()
    assert res.code == "VTA-010"
    assert sleeps == [0.01, 0.01]


def test_query_failure_is_transport_error(backend):
    backend.fail_next("GET", "ventas/ultimo-codigo", TransportError("offline"))
    with pytest.raises(ReservationTransportError):
        _client(backend).acquire()


def test_reserve_server_error_is_transport_error(backend):
    backend.fail_next("POST", "ventas/codigos/reservar", ApiError("boom", status_code=500))
    with pytest.raises(ReservationTransportError):
        _client(backend).acquire()


def test_release_frees_code_once(backend):
    client = _client(backend)
    res = client.acquire()
    assert client.release(res) is True
    assert client.release(res) is False
    assert res.state is ReservationState.RELEASED
    assert backend.released == ["VTA-008"]


def test_release_failure_is_swallowed(backend):
    client = _client(backend)
    res = client.acquire()
    backend.fail_next("POST", "ventas/codigos/liberar", TransportError("offline"))
    assert client.release(res) is False
    assert res.state is ReservationState.RELEASED


def test_committed_code_is_never_released(backend):
    client = _client(backend)
    res = client.acquire()
    client.mark_committed(res)
    assert client.release(res) is False
    assert backend.calls_to("POST", "ventas/codigos/liberar") == []


def test_mark_committed_after_release_is_invalid(backend):
    client = _client(backend)
    res = client.acquire()
    client.release(res)
    with pytest.raises(InvalidTransition):
        client.mark_committed(res)


def test_concurrent_sessions_get_distinct_codes(backend):
    client = _client(backend)
    with ThreadPoolExecutor(max_workers=8) as pool:
        codes = [r.code for r in pool.map(lambda _: client.acquire(), range(20))]
    assert len(set(codes)) == 20
    assert backend.reserved == set(codes)
