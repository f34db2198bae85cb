from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from epd.pipeline.modes import PrecisionMode, is_visualizing
from epd.session.base import SessionBackend

SessionFactory = Callable[[int, int], SessionBackend]


class InputGeometryChanged(RuntimeError):
    """Raised when frames stop matching the geometry the session was built for."""


@dataclass
class SessionState:
    mode: PrecisionMode
    initialized: bool = False
    width: int = 0
    height: int = 0
    session: SessionBackend | None = None

    @property
    def precision_level(self) -> int:
        return self.mode.precision_level

    @property
    def visualize_mode(self) -> bool:
        return is_visualizing(self.mode)


class SessionBootstrap:
    """Builds the session lazily from the first frame and guards its geometry afterwards.

    With ``strict_geometry`` off, only a frame whose width AND height both
    differ is rejected; a single changed dimension runs against the session
    built for the original size. Set ``strict_geometry`` to reject either.
    """

    def __init__(
        self,
        mode: PrecisionMode,
        session_factory: SessionFactory,
        strict_geometry: bool = False,
    ) -> None:
        self._logger = logging.getLogger("epd.pipeline.bootstrap")
        self._factory = session_factory
        self._strict_geometry = strict_geometry
        self._state = SessionState(mode=mode)
        self._init_lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def mode(self) -> PrecisionMode:
        return self._state.mode

    def ensure(self, frame: Any) -> SessionBackend:
        rows, cols = frame.shape[:2]
        state = self._state
        if not state.initialized:
            with self._init_lock:
                if not state.initialized:
                    self._initialize(int(cols), int(rows))
                    assert state.session is not None
                    return state.session

        self._check_geometry(int(cols), int(rows))
        assert state.session is not None
        return state.session

    def _initialize(self, width: int, height: int) -> None:
        state = self._state
        self._logger.info(
            "initializing session for first frame %dx%d (precision level %d, visualize=%s)",
            width,
            height,
            state.precision_level,
            state.visualize_mode,
        )
        session = self._factory(width, height)
        state.width = width
        state.height = height
        state.session = session
        state.initialized = True

    def _check_geometry(self, cols: int, rows: int) -> None:
        state = self._state
        width_changed = cols != state.width
        height_changed = rows != state.height
        if self._strict_geometry:
            changed = width_changed or height_changed
        else:
            changed = width_changed and height_changed
        if changed:
            raise InputGeometryChanged(
                "Input camera changed. Please restart. "
                f"(session {state.width}x{state.height}, frame {cols}x{rows})"
            )
        if width_changed or height_changed:
            self._logger.debug(
                "frame %dx%d differs from session %dx%d in one dimension; continuing",
                cols,
                rows,
                state.width,
                state.height,
            )
