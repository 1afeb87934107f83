"""Load-once map library registry and the map background view.

The external map library is shared process-wide: the first view that needs it
starts the only fetch, later views either use the loaded library directly or
subscribe to the load already in flight. Each view owns at most one map handle,
which is re-centred (never recreated) when its position input changes.

Everything here runs on the UI loop. Background work is confined to the
LoadTask a fetcher returns; the registry polls it from update().
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import pygame

from .config import AppConfig
from .locations import Location, resolve

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load map"


class MapLoadError(RuntimeError):
    """The map library or a map instance could not be loaded."""


class LoaderStatus(str, Enum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class MapOptions:
    """Non-interactive presentation: the map is a backdrop, never a control."""

    zoom: int = 12
    disable_default_ui: bool = True
    gesture_handling: str = "none"
    zoom_control: bool = False
    scrollwheel: bool = False
    disable_double_click_zoom: bool = True
    draggable: bool = False
    hide_labels: bool = True


class MapHandle(Protocol):
    @property
    def center(self) -> Location: ...
    def pan_to(self, location: Location) -> None: ...
    def update(self) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class MapLibrary(Protocol):
    def create_map(self, *, bounds: pygame.Rect, center: Location, options: MapOptions) -> MapHandle: ...


class LoadTask(Protocol):
    """Pending library load; concurrent.futures.Future satisfies this."""

    def done(self) -> bool: ...
    def result(self) -> MapLibrary: ...


class LibraryFetcher(Protocol):
    def start(self) -> LoadTask: ...


@dataclass(frozen=True, slots=True)
class LoadResult:
    library: MapLibrary | None = None
    error: MapLoadError | None = None

    @property
    def ok(self) -> bool:
        return self.library is not None and self.error is None


LoadCallback = Callable[[LoadResult], None]


class Subscription:
    """A listener on the shared library load. Cancelled listeners never fire."""

    def __init__(self, registry: "LibraryRegistry", callback: LoadCallback) -> None:
        self._registry = registry
        self._callback: LoadCallback | None = callback

    @property
    def active(self) -> bool:
        return self._callback is not None

    def cancel(self) -> None:
        if self._callback is None:
            return
        self._callback = None
        self._registry._detach(self)

    def _deliver(self, result: LoadResult) -> None:
        callback = self._callback
        if callback is None:
            return
        self._callback = None
        callback(result)


class LibraryRegistry:
    """Process-wide loader status: NOT_LOADED -> LOADING(listeners) -> LOADED | FAILED.

    The check for an in-flight load and the attach of a new listener happen in
    the same call, so concurrent mounts collapse into a single fetch.
    Failures are sticky; there is no automatic retry until reset().
    """

    def __init__(self) -> None:
        self._status = LoaderStatus.NOT_LOADED
        self._library: MapLibrary | None = None
        self._error: MapLoadError | None = None
        self._fetcher: LibraryFetcher | None = None
        self._task: LoadTask | None = None
        self._listeners: list[Subscription] = []
        self._fetch_count = 0

    @property
    def status(self) -> LoaderStatus:
        return self._status

    @property
    def library(self) -> MapLibrary | None:
        return self._library

    @property
    def error(self) -> MapLoadError | None:
        return self._error

    @property
    def fetch_count(self) -> int:
        return self._fetch_count

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, fetcher: LibraryFetcher, callback: LoadCallback) -> Subscription:
        sub = Subscription(self, callback)

        if self._status is LoaderStatus.LOADED:
            logger.debug("Map library already loaded")
            sub._deliver(LoadResult(library=self._library))
            return sub
        if self._status is LoaderStatus.FAILED:
            sub._deliver(LoadResult(error=self._error))
            return sub

        self._listeners.append(sub)
        if self._status is LoaderStatus.LOADING:
            logger.debug("Map library load in flight, waiting for it")
            return sub

        self._start(fetcher)
        return sub

    def update(self) -> None:
        if self._status is not LoaderStatus.LOADING:
            return
        task = self._task
        if task is None or not task.done():
            return
        try:
            library = task.result()
        except MapLoadError as exc:
            self._finish(LoadResult(error=exc))
            return
        except Exception as exc:
            self._finish(LoadResult(error=MapLoadError(f"map library load failed: {exc}")))
            return
        self._finish(LoadResult(library=library))

    def reset(self) -> None:
        """Forget everything (including a failure) so the next subscribe fetches again."""

        for sub in list(self._listeners):
            sub.cancel()
        self._status = LoaderStatus.NOT_LOADED
        self._library = None
        self._error = None
        self._task = None
        self._fetcher = None

    def close(self) -> None:
        """Release the worker pool and connections behind the library, then reset.

        Closes the loaded library when there is one, otherwise the fetcher of an
        in-flight load. Either may lack a close() method.
        """

        target = self._library if self._library is not None else self._fetcher
        close = getattr(target, "close", None)
        if close is not None:
            logger.debug("Closing map library resources")
            close()
        self.reset()

    def _start(self, fetcher: LibraryFetcher) -> None:
        self._status = LoaderStatus.LOADING
        self._fetch_count += 1
        self._fetcher = fetcher
        logger.info("Loading map library")
        try:
            self._task = fetcher.start()
        except Exception as exc:
            self._finish(LoadResult(error=MapLoadError(f"map library load failed to start: {exc}")))

    def _finish(self, result: LoadResult) -> None:
        self._task = None
        if result.ok:
            self._status = LoaderStatus.LOADED
            self._library = result.library
            logger.info("Map library loaded")
        else:
            self._status = LoaderStatus.FAILED
            self._error = result.error
            logger.error("Error loading map library: %s", result.error)

        listeners = self._listeners
        self._listeners = []
        for sub in listeners:
            sub._deliver(result)

    def _detach(self, sub: Subscription) -> None:
        try:
            self._listeners.remove(sub)
        except ValueError:
            pass


_default_registry = LibraryRegistry()


def default_registry() -> LibraryRegistry:
    return _default_registry


def reset_default_registry() -> LibraryRegistry:
    global _default_registry
    _default_registry = LibraryRegistry()
    return _default_registry


class MapBackground:
    """Map backdrop view keyed by a rotation index or a place label.

    Exposes is_loaded / error to the screen that hosts it. Missing or
    placeholder credentials leave it in the static placeholder state; load
    and construction failures are captured in error and the view then draws
    nothing. Nothing raised here reaches the host screen.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        fetcher_factory: Callable[[str], LibraryFetcher],
        registry: LibraryRegistry | None = None,
        options: MapOptions | None = None,
        index: int | None = None,
        label: str | None = None,
    ) -> None:
        self._config = config
        self._fetcher_factory = fetcher_factory
        self._registry = registry if registry is not None else default_registry()
        self._options = options or MapOptions()

        self._location = resolve(label=label, index=index)
        self._container: pygame.Rect | None = None
        self._handle: MapHandle | None = None
        self._subscription: Subscription | None = None
        self._error: str | None = None
        self._mounted = False
        self._caption_font: pygame.font.Font | None = None

    @property
    def is_loaded(self) -> bool:
        return self._handle is not None and self._error is None

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def location(self) -> Location:
        return self._location

    @property
    def handle(self) -> MapHandle | None:
        return self._handle

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self, container: pygame.Rect) -> None:
        if self._mounted:
            return
        self._mounted = True
        self._container = pygame.Rect(container)
        self._error = None
        logger.debug("Map background mounted at %s (location %s)", self._container, self._location.name)

        if not self._config.maps_enabled:
            logger.warning("Google Maps API key not configured. Map background will not display.")
            return
        if self._handle is not None:
            return

        try:
            fetcher = self._fetcher_factory(str(self._config.maps_api_key))
            subscription = self._registry.subscribe(fetcher, self._on_library_result)
        except Exception:
            logger.exception("Error loading map")
            self._error = LOAD_FAILED_MESSAGE
            return
        # A loaded or failed registry answers synchronously inside subscribe().
        self._subscription = subscription if subscription.active else None

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        self._container = None
        self._mounted = False

    def set_position(self, *, index: int | None = None, label: str | None = None) -> None:
        location = resolve(label=label, index=index)
        if location == self._location:
            return
        self._location = location
        if self._handle is None or self._error is not None:
            # Picked up when the handle is created.
            return
        logger.debug("Moving map to %s (%.4f, %.4f)", location.name, location.lat, location.lng)
        try:
            self._handle.pan_to(location)
        except Exception:
            logger.exception("Error moving map to %s", location.name)
            self._error = LOAD_FAILED_MESSAGE

    def update(self) -> None:
        if self._handle is None or self._error is not None or not self._mounted:
            return
        try:
            self._handle.update()
        except Exception:
            logger.exception("Map update failed")
            self._error = LOAD_FAILED_MESSAGE

    def render(self, surface: pygame.Surface) -> None:
        if self._error is not None or self._container is None:
            return
        if self._handle is not None:
            try:
                self._handle.render(surface)
            except Exception:
                logger.exception("Map render failed")
                self._error = LOAD_FAILED_MESSAGE
            return

        surface.fill((229, 231, 235), self._container)
        if not self._config.maps_enabled:
            return
        if self._caption_font is None:
            self._caption_font = pygame.font.Font(None, 24)
        caption = self._caption_font.render("Loading map...", True, (107, 114, 128))
        surface.blit(caption, caption.get_rect(center=self._container.center))

    def _on_library_result(self, result: LoadResult) -> None:
        self._subscription = None
        if not self._mounted:
            return
        if not result.ok or result.library is None:
            logger.error("Map background not rendering: %s", result.error)
            self._error = LOAD_FAILED_MESSAGE
            return
        self._instantiate(result.library)

    def _instantiate(self, library: MapLibrary) -> None:
        if self._handle is not None or self._container is None:
            return
        try:
            self._handle = library.create_map(
                bounds=pygame.Rect(self._container),
                center=self._location,
                options=self._options,
            )
        except Exception:
            logger.exception("Error creating map")
            self._error = LOAD_FAILED_MESSAGE
            return
        logger.info(
            "Map initialized at %s (%.4f, %.4f)",
            self._location.name,
            self._location.lat,
            self._location.lng,
        )
