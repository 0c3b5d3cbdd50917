"""
Panel Controller

Imperative shell around the reducer. Holds the current AppState, runs
actions through reduce() and executes the resulting effects (OSC sends,
saves, log lines).

The whole AppState is one unit of mutual exclusion: a dispatch runs to
completion under the lock before the next one starts, and readers get
a consistent snapshot.
"""

import logging
import threading
from typing import Any, List, Optional, Protocol, Sequence

from .model import AppState, Effect, LogEffect, SaveStateEffect, SendOscEffect, default_state
from .reducer import Action, ensure_selection, reduce
from .visibility import ControlSection, layout_sections

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def send(self, address: str, values: Optional[Sequence[Any]], host: str, port: int) -> bool: ...


class Storage(Protocol):
    def load(self) -> Optional[AppState]: ...

    def save(self, state: AppState) -> bool: ...


class PanelController:
    """
    Owns the application state and executes effects.

    Usage:
        controller = PanelController(transport=OscTransport(), storage=StateStorage())
        controller.dispatch(AddRootPreset(layout_id, "Drums"))
        for section in controller.sections():
            ...
    """

    def __init__(
        self,
        state: Optional[AppState] = None,
        transport: Optional[Transport] = None,
        storage: Optional[Storage] = None,
    ):
        self.transport = transport
        self.storage = storage
        self._lock = threading.RLock()

        if state is None and storage is not None:
            state = storage.load()
        self._state = ensure_selection(state or default_state())

    @property
    def state(self) -> AppState:
        with self._lock:
            return self._state

    def dispatch(self, action: Action) -> List[Effect]:
        """
        Apply an action and execute its effects.

        Returns:
            The effects produced by the transition
        """
        with self._lock:
            self._state, effects = reduce(self._state, action)
            self._execute_effects(effects)
        return effects

    def sections(self, layout_id: Optional[str] = None) -> List[ControlSection]:
        """Visible control sections of a layout (the selected one by default)."""
        state = self.state
        layout = state.find_layout(layout_id) if layout_id else state.selected_layout
        if layout is None:
            return []
        return layout_sections(layout)

    def _execute_effects(self, effects: List[Effect]):
        """Execute side effects."""
        for effect in effects:
            if isinstance(effect, SendOscEffect):
                if self.transport is None:
                    logger.debug(f"No transport, dropping {effect.address}")
                    continue
                self.transport.send(effect.address, list(effect.args), effect.host, effect.port)

            elif isinstance(effect, SaveStateEffect):
                if self.storage is not None:
                    self.storage.save(self._state)

            elif isinstance(effect, LogEffect):
                level = getattr(logging, effect.level, logging.INFO)
                logger.log(level, effect.message)
