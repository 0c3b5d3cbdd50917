"""
State Persistence

Loads and saves the full application state as JSON with atomic writes.
A file that no longer matches the schema is treated as absent.
"""

import logging
from pathlib import Path
from typing import Optional

from .codec import decode_state, encode_state
from .model import AppState

logger = logging.getLogger(__name__)

DEFAULT_STATE_PATH = Path.home() / ".config" / "osc_panel_lib" / "state.json"


class StateStorage:
    """
    JSON file storage for AppState.

    Usage:
        storage = StateStorage()
        state = storage.load() or default_state()
        storage.save(state)
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_STATE_PATH

    def load(self) -> Optional[AppState]:
        """
        Load the persisted state.

        Returns:
            The state, or None when the file is missing or does not decode
        """
        if not self.path.exists():
            logger.info(f"No saved state at {self.path}")
            return None
        try:
            state = decode_state(self.path.read_bytes())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable state at {self.path}: {e}")
            return None
        logger.info(f"Loaded {len(state.layouts)} layouts from {self.path}")
        return state

    def save(self, state: AppState) -> bool:
        """
        Save the state atomically (temp file + rename).

        Returns:
            True if saved successfully
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(encode_state(state))
            tmp_path.replace(self.path)
            logger.debug(f"Saved state to {self.path}")
            return True
        except Exception as e:
            logger.error(f"Failed to save state: {e}")
            return False
