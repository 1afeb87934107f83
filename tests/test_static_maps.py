from __future__ import annotations

import io
from concurrent.futures import Future
from typing import Any, Callable

import pygame
import pytest
import requests

from wheretomove.locations import CITIES, Location
from wheretomove.map_loader import LibraryRegistry, LoaderStatus, MapLoadError, MapOptions
from wheretomove.static_maps import (
    STATIC_MAPS_URL,
    StaticMap,
    StaticMapsFetcher,
    StaticMapsLibrary,
    build_params,
)


def _png_bytes(size: tuple[int, int] = (8, 6), color: tuple[int, int, int] = (10, 200, 30)) -> bytes:
    surf = pygame.Surface(size)
    surf.fill(color)
    buf = io.BytesIO()
    pygame.image.save(surf, buf, "map.png")
    return buf.getvalue()


class FakeResponse:
    def __init__(self, status_code: int, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content


class FakeSession:
    def __init__(self, responses: list[FakeResponse | Exception]) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, dict[str, Any], float]] = []
        self.closed = 0

    def get(self, url: str, *, params: dict[str, Any], timeout: float) -> FakeResponse:
        self.calls.append((url, params, timeout))
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed += 1


class ImmediateExecutor:
    def __init__(self) -> None:
        self.shutdowns: list[dict[str, bool]] = []

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        fut: Future = Future()
        try:
            fut.set_result(fn(*args))
        except Exception as exc:
            fut.set_exception(exc)
        return fut

    def shutdown(self, *, wait: bool = True, cancel_futures: bool = False) -> None:
        self.shutdowns.append({"wait": wait, "cancel_futures": cancel_futures})


class DeferredExecutor:
    """Holds submitted work until run(i), like a slow worker pool."""

    def __init__(self) -> None:
        self.jobs: list[tuple[Future, Callable[..., Any], tuple[Any, ...]]] = []
        self.shutdowns: list[dict[str, bool]] = []

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        fut: Future = Future()
        self.jobs.append((fut, fn, args))
        return fut

    def run(self, i: int) -> None:
        fut, fn, args = self.jobs[i]
        try:
            fut.set_result(fn(*args))
        except Exception as exc:
            fut.set_exception(exc)

    def shutdown(self, *, wait: bool = True, cancel_futures: bool = False) -> None:
        self.shutdowns.append({"wait": wait, "cancel_futures": cancel_futures})
        for fut, _fn, _args in self.jobs:
            if cancel_futures:
                fut.cancel()


def test_build_params_clamps_size_and_hides_labels() -> None:
    params = build_params(api_key="k", center=CITIES[0], size=(1200, 0), options=MapOptions())
    assert params["size"] == "640x1"
    assert params["center"] == "35.6762,139.6503"
    assert params["zoom"] == 12
    assert params["key"] == "k"
    assert params["style"] == "feature:all|element:labels|visibility:off"

    shown = build_params(api_key="k", center=CITIES[0], size=(100, 100), options=MapOptions(hide_labels=False))
    assert "style" not in shown


def test_fetcher_rejects_empty_key() -> None:
    with pytest.raises(ValueError):
        StaticMapsFetcher("  ")


def test_probe_success_returns_library() -> None:
    session = FakeSession([FakeResponse(200, _png_bytes((1, 1)))])
    fetcher = StaticMapsFetcher("key", session=session, executor=ImmediateExecutor(), timeout_s=3.0)

    task = fetcher.start()

    assert task.done()
    assert isinstance(task.result(), StaticMapsLibrary)
    url, params, timeout = session.calls[0]
    assert url == STATIC_MAPS_URL
    assert params["size"] == "1x1"
    assert timeout == 3.0


def test_probe_rejected_key_is_load_error() -> None:
    fetcher = StaticMapsFetcher("bad", session=FakeSession([FakeResponse(403)]), executor=ImmediateExecutor())
    with pytest.raises(MapLoadError, match="403"):
        fetcher.start().result()


def test_probe_network_error_is_load_error() -> None:
    session = FakeSession([requests.ConnectionError("dns failure")])
    fetcher = StaticMapsFetcher("key", session=session, executor=ImmediateExecutor())
    with pytest.raises(MapLoadError):
        fetcher.start().result()


def test_registry_loads_static_maps_once() -> None:
    session = FakeSession([FakeResponse(200, b"")])
    fetcher = StaticMapsFetcher("key", session=session, executor=ImmediateExecutor())
    registry = LibraryRegistry()
    results = []

    registry.subscribe(fetcher, results.append)
    registry.subscribe(fetcher, results.append)
    registry.update()

    assert registry.status is LoaderStatus.LOADED
    assert len(session.calls) == 1
    assert [r.ok for r in results] == [True, True]


def _library(session: FakeSession, executor: Any) -> StaticMapsLibrary:
    return StaticMapsLibrary("key", session=session, executor=executor)


def test_static_map_loads_and_scales_image() -> None:
    session = FakeSession([FakeResponse(200, _png_bytes((8, 6)))])
    bounds = pygame.Rect(0, 0, 16, 12)
    handle = _library(session, ImmediateExecutor()).create_map(bounds=bounds, center=CITIES[1], options=MapOptions())

    assert handle.image is None
    handle.update()
    assert handle.image is not None
    assert handle.image.get_size() == (8, 6)
    assert session.calls[0][1]["size"] == "16x12"

    surface = pygame.Surface((16, 12))
    handle.render(surface)
    assert surface.get_at((15, 11))[:3] == (10, 200, 30)


def test_pan_requests_new_image_and_newest_wins() -> None:
    executor = DeferredExecutor()
    session = FakeSession(
        [
            FakeResponse(200, _png_bytes(color=(255, 0, 0))),
            FakeResponse(200, _png_bytes(color=(0, 0, 255))),
        ]
    )
    handle = StaticMap(
        _library(session, executor),
        bounds=pygame.Rect(0, 0, 8, 6),
        center=CITIES[0],
        options=MapOptions(),
    )
    handle.pan_to(CITIES[0])
    assert len(executor.jobs) == 1

    handle.pan_to(CITIES[3])
    assert handle.center == CITIES[3]
    assert len(executor.jobs) == 2

    executor.run(0)
    handle.update()
    assert handle.image is None
    assert handle.pending is True

    executor.run(1)
    handle.update()
    assert handle.image is not None
    assert handle.image.get_at((0, 0))[:3] == (0, 0, 255)
    assert handle.pending is False


def test_failed_image_keeps_previous_picture() -> None:
    session = FakeSession(
        [
            FakeResponse(200, _png_bytes()),
            FakeResponse(500),
            FakeResponse(200, b"not a png"),
        ]
    )
    handle = _library(session, ImmediateExecutor()).create_map(
        bounds=pygame.Rect(0, 0, 8, 6), center=CITIES[0], options=MapOptions()
    )
    handle.update()
    first = handle.image

    handle.pan_to(Location("Somewhere", 1.0, 2.0))
    handle.update()
    assert handle.image is first

    handle.pan_to(CITIES[2])
    handle.update()
    assert handle.image is first


def test_registry_close_releases_pool_and_session_of_loaded_library() -> None:
    session = FakeSession([FakeResponse(200, b"")])
    executor = ImmediateExecutor()
    registry = LibraryRegistry()
    registry.subscribe(StaticMapsFetcher("key", session=session, executor=executor), lambda result: None)
    registry.update()
    assert registry.status is LoaderStatus.LOADED

    registry.close()

    assert executor.shutdowns == [{"wait": False, "cancel_futures": True}]
    assert session.closed == 1
    assert registry.status is LoaderStatus.NOT_LOADED
    assert registry.library is None


def test_registry_close_during_probe_cancels_it_and_drops_listeners() -> None:
    session = FakeSession([FakeResponse(200, b"")])
    executor = DeferredExecutor()
    registry = LibraryRegistry()
    results = []
    registry.subscribe(StaticMapsFetcher("key", session=session, executor=executor), results.append)

    registry.close()
    registry.update()

    probe, _fn, _args = executor.jobs[0]
    assert probe.cancelled()
    assert executor.shutdowns == [{"wait": False, "cancel_futures": True}]
    assert session.closed == 1
    assert session.calls == []
    assert registry.listener_count == 0
    assert results == []


def test_fetcher_close_before_start_is_a_no_op() -> None:
    StaticMapsFetcher("key").close()


def test_library_close_cancels_pending_image_requests() -> None:
    session = FakeSession([])
    executor = DeferredExecutor()
    library = _library(session, executor)
    handle = library.create_map(bounds=pygame.Rect(0, 0, 8, 6), center=CITIES[0], options=MapOptions())

    library.close()

    pending, _fn, _args = executor.jobs[0]
    assert pending.cancelled()
    assert session.closed == 1
    assert handle.image is None
