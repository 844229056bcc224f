# tourney_api/storage.py
from __future__ import annotations

import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Callable, Optional, Union

from pydantic import TypeAdapter, ValidationError

from tourney_api.models import TournamentState

logger = logging.getLogger(__name__)

_STATE_ADAPTER = TypeAdapter(TournamentState)
_REQUIRED_KEYS = frozenset(f.name for f in fields(TournamentState))


class CorruptStateError(ValueError):
    pass


def dump_state(state: TournamentState) -> bytes:
    return _STATE_ADAPTER.dump_json(state, indent=2)


def parse_state(raw: Union[str, bytes]) -> TournamentState:
    """
    Strict snapshot parsing: every field must be present and of the right JSON
    type. Raises CorruptStateError otherwise.
    """
    try:
        blob = json.loads(raw)
    except ValueError as e:
        raise CorruptStateError(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(blob, dict):
        raise CorruptStateError("Snapshot must be a JSON object")

    missing = _REQUIRED_KEYS - set(blob)
    if missing:
        raise CorruptStateError(f"Snapshot is missing fields: {', '.join(sorted(missing))}")

    try:
        state = _STATE_ADAPTER.validate_json(raw, strict=True)
    except ValidationError as e:
        raise CorruptStateError(f"Snapshot has invalid fields: {e.error_count()} error(s)") from e

    if state.is_generated and not state.matches:
        raise CorruptStateError("Snapshot is marked generated but has no matches")

    return state


class StateStore:
    """
    Best-effort JSON snapshot of the tournament.

    Never raises to callers: a missing, unreadable or corrupt snapshot yields
    the default state, and write failures are only logged.
    """

    def __init__(
        self,
        path: Union[str, Path],
        enabled: bool = True,
        default_factory: Optional[Callable[[], TournamentState]] = None,
    ) -> None:
        self.path = Path(path)
        self.enabled = enabled
        self._default_factory = default_factory or TournamentState

    def load(self) -> TournamentState:
        if not self.enabled or not self.path.exists():
            return self._default_factory()

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            logger.warning("could not read tournament snapshot %s: %s", self.path, e)
            return self._default_factory()

        try:
            state = parse_state(raw)
        except CorruptStateError as e:
            logger.warning("discarding corrupt tournament snapshot %s: %s", self.path, e)
            self.clear()
            return self._default_factory()

        logger.info("tournament snapshot loaded from %s (%d matches)", self.path, len(state.matches))
        return state

    def save(self, state: TournamentState) -> None:
        if not self.enabled:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_name(self.path.name + ".tmp")
            tmp.write_bytes(dump_state(state))
            tmp.replace(self.path)
        except OSError as e:
            logger.warning("could not save tournament snapshot %s: %s", self.path, e)
            return
        logger.debug("tournament snapshot saved to %s", self.path)

    def clear(self) -> None:
        if not self.enabled:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("could not remove tournament snapshot %s: %s", self.path, e)
