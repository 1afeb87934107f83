"""Map library backed by the Google Static Maps HTTP API.

HTTP requests run on a small worker pool; results come back as futures that
the UI loop polls. Worker threads never touch pygame surfaces or view state.
"""

from __future__ import annotations

import io
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import pygame
import requests

from .locations import CITIES, Location
from .map_loader import MapLoadError, MapOptions

logger = logging.getLogger(__name__)

STATIC_MAPS_URL = "https://maps.googleapis.com/maps/api/staticmap"
MAX_IMAGE_SIDE = 640  # Static Maps limit per side at scale=1
PROBE_SIZE = (1, 1)
DEFAULT_TIMEOUT_S = 10.0


def build_params(
    *,
    api_key: str,
    center: Location,
    size: tuple[int, int],
    options: MapOptions,
) -> dict[str, Any]:
    w = max(1, min(MAX_IMAGE_SIDE, int(size[0])))
    h = max(1, min(MAX_IMAGE_SIDE, int(size[1])))
    params: dict[str, Any] = {
        "center": f"{center.lat:.4f},{center.lng:.4f}",
        "zoom": int(options.zoom),
        "size": f"{w}x{h}",
        "format": "png",
        "key": api_key,
    }
    if options.hide_labels:
        params["style"] = "feature:all|element:labels|visibility:off"
    return params


class StaticMapsLibrary:
    """The loaded library: creates map handles sharing one HTTP session and pool."""

    def __init__(
        self,
        api_key: str,
        *,
        session: requests.Session,
        executor: ThreadPoolExecutor,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._api_key = api_key
        self._session = session
        self._executor = executor
        self._timeout_s = float(timeout_s)

    def create_map(self, *, bounds: pygame.Rect, center: Location, options: MapOptions) -> "StaticMap":
        return StaticMap(self, bounds=bounds, center=center, options=options)

    def fetch_image(self, *, center: Location, size: tuple[int, int], options: MapOptions) -> Future[bytes]:
        params = build_params(api_key=self._api_key, center=center, size=size, options=options)
        return self._executor.submit(self._get_image, params)

    def close(self) -> None:
        # Pending image requests are dropped; a running one finishes on its own.
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._session.close()

    def _get_image(self, params: dict[str, Any]) -> bytes:
        try:
            resp = self._session.get(STATIC_MAPS_URL, params=params, timeout=self._timeout_s)
        except requests.RequestException as exc:
            raise MapLoadError(f"map image request failed: {exc}") from exc
        if resp.status_code != 200:
            raise MapLoadError(f"map image request returned HTTP {resp.status_code}")
        return resp.content


class StaticMap:
    """One map handle. pan_to() requests a new image; the newest request wins."""

    def __init__(
        self,
        library: StaticMapsLibrary,
        *,
        bounds: pygame.Rect,
        center: Location,
        options: MapOptions,
    ) -> None:
        self._library = library
        self._bounds = pygame.Rect(bounds)
        self._options = options
        self._center = center
        self._image: pygame.Surface | None = None
        self._scaled: pygame.Surface | None = None
        self._pending: Future[bytes] | None = None
        self._request(center)

    @property
    def center(self) -> Location:
        return self._center

    @property
    def bounds(self) -> pygame.Rect:
        return pygame.Rect(self._bounds)

    @property
    def image(self) -> pygame.Surface | None:
        return self._image

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def pan_to(self, location: Location) -> None:
        if location == self._center:
            return
        self._center = location
        self._request(location)

    def update(self) -> None:
        pending = self._pending
        if pending is None or not pending.done():
            return
        self._pending = None
        try:
            data = pending.result()
            image = pygame.image.load(io.BytesIO(data), "map.png")
        except (MapLoadError, pygame.error) as exc:
            # Keep showing the previous image.
            logger.warning("Map image for %s unavailable: %s", self._center.name, exc)
            return
        self._image = image
        self._scaled = None

    def render(self, surface: pygame.Surface) -> None:
        if self._image is None:
            return
        if self._scaled is None:
            if self._image.get_size() == self._bounds.size:
                self._scaled = self._image
            else:
                self._scaled = pygame.transform.scale(self._image, self._bounds.size)
        surface.blit(self._scaled, self._bounds.topleft)

    def _request(self, location: Location) -> None:
        self._pending = self._library.fetch_image(
            center=location,
            size=self._bounds.size,
            options=self._options,
        )


class StaticMapsFetcher:
    """One-time library load: validates the key with a minimal probe image."""

    def __init__(
        self,
        api_key: str,
        *,
        session: requests.Session | None = None,
        executor: ThreadPoolExecutor | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        if api_key.strip() == "":
            raise ValueError("api_key must not be empty")
        self._api_key = api_key
        self._session = session
        self._executor = executor
        self._timeout_s = float(timeout_s)

    def start(self) -> Future[StaticMapsLibrary]:
        if self._session is None:
            self._session = requests.Session()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="wtm-maps")
        logger.info("Loading Google Static Maps")
        return self._executor.submit(self._probe)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
        if self._session is not None:
            self._session.close()

    def _probe(self) -> StaticMapsLibrary:
        assert self._session is not None
        assert self._executor is not None
        params = build_params(api_key=self._api_key, center=CITIES[0], size=PROBE_SIZE, options=MapOptions())
        try:
            resp = self._session.get(STATIC_MAPS_URL, params=params, timeout=self._timeout_s)
        except requests.RequestException as exc:
            raise MapLoadError(f"Google Static Maps unreachable: {exc}") from exc
        if resp.status_code != 200:
            raise MapLoadError(f"Google Static Maps rejected the key (HTTP {resp.status_code})")
        return StaticMapsLibrary(
            self._api_key,
            session=self._session,
            executor=self._executor,
            timeout_s=self._timeout_s,
        )
