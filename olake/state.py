"""Synchronisation state: cursors and chunks per stream, plus shared global state."""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from olake.sets import HashSet

logger = logging.getLogger(__name__)

CHUNKS_KEY = "chunks"


class StateType(StrEnum):
    """How a connector keeps its state."""

    GLOBAL = "GLOBAL"
    STREAM = "STREAM"
    MIXED = "MIXED"


def _encode(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, HashSet):
        return [_encode(item) for item in value]
    if isinstance(value, Mapping):
        return {key: _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    return value


@dataclass
class Chunk:
    """A range of a stream, bounded by min and max values."""

    min: Any = None
    max: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the chunk."""
        return {"min": self.min, "max": self.max}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Chunk:
        """Build a chunk from its JSON form."""
        return cls(min=data.get("min"), max=data.get("max"))


@dataclass
class StreamState:
    """State values kept for one stream."""

    stream: str = ""
    namespace: str = ""
    sync_mode: str = ""
    state: dict[str, Any] = field(default_factory=dict)
    holds_value: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the stream state."""
        return {
            "stream": self.stream,
            "namespace": self.namespace,
            "sync_mode": self.sync_mode,
            "state": {key: _encode(value) for key, value in self.state.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StreamState:
        """Build a stream state from its JSON form; chunks become a set of Chunk."""
        if not isinstance(data, Mapping):
            raise ValueError("stream state must be a JSON object")
        values = dict(data.get("state") or {})
        raw_chunks = values.get(CHUNKS_KEY)
        if isinstance(raw_chunks, list):
            chunks: HashSet[Chunk] = HashSet()
            for item in raw_chunks:
                if not isinstance(item, Mapping):
                    raise ValueError(f"invalid chunk in state: {item!r}")
                chunks.insert(Chunk.from_dict(item))
            values[CHUNKS_KEY] = chunks
        return cls(
            stream=data.get("stream") or "",
            namespace=data.get("namespace") or "",
            sync_mode=data.get("sync_mode") or "",
            state=values,
            holds_value=bool(values),
        )


@dataclass
class State:
    """Thread-safe state of a sync, written to state_file whenever it changes."""

    type: StateType = StateType.STREAM
    global_state: Any = None
    streams: list[StreamState] = field(default_factory=list)
    state_file: str | os.PathLike[str] | None = None
    _lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )

    def _find(self, stream: Any) -> StreamState | None:
        return next(
            (
                s
                for s in self.streams
                if s.namespace == stream.namespace and s.stream == stream.name
            ),
            None,
        )

    def _store(self, stream: Any, key: str, value: Any) -> None:
        entry = self._find(stream)
        if entry is None:
            entry = StreamState(stream=stream.name, namespace=stream.namespace)
            self.streams.append(entry)
        entry.state[key] = value
        entry.holds_value = True

    def is_zero(self) -> bool:
        """Return True if the state holds nothing."""
        return self.global_state is None and not self.streams

    def set_type(self, state_type: StateType) -> None:
        """Set the kind of state."""
        self.type = StateType(state_type)

    def reset_streams(self) -> None:
        """Drop the state of every stream."""
        with self._lock:
            self.streams = []
            self.log_state()

    def set_cursor(self, stream: Any, key: str, value: Any) -> None:
        """Store a cursor value for a stream."""
        with self._lock:
            self._store(stream, key, value)
            self.log_state()

    def get_cursor(self, stream: Any, key: str) -> Any:
        """Return a cursor value of a stream, or None."""
        with self._lock:
            entry = self._find(stream)
            return None if entry is None else entry.state.get(key)

    def get_chunks(self, stream: Any) -> HashSet[Chunk] | None:
        """Return the chunks stored for a stream, or None."""
        with self._lock:
            entry = self._find(stream)
            if entry is None:
                return None
            chunks = entry.state.get(CHUNKS_KEY)
            return chunks if isinstance(chunks, HashSet) else None

    def set_chunks(self, stream: Any, chunks: HashSet[Chunk]) -> None:
        """Store the chunks of a stream."""
        with self._lock:
            self._store(stream, CHUNKS_KEY, chunks)
            self.log_state()

    def remove_chunk(self, stream: Any, chunk: Chunk) -> None:
        """Remove one chunk from a stream's chunks."""
        with self._lock:
            entry = self._find(stream)
            if entry is not None:
                chunks = entry.state.get(CHUNKS_KEY)
                if isinstance(chunks, HashSet):
                    chunks.remove(chunk)
            self.log_state()

    def set_global_state(self, global_state: Any) -> None:
        """Replace the state shared by all streams."""
        with self._lock:
            self.global_state = global_state
            self.log_state()

    def to_dict(self) -> dict[str, Any] | None:
        """Return the JSON form; None for an empty state.

        Streams that hold no value are left out.
        """
        with self._lock:
            if self.is_zero():
                return None
            out: dict[str, Any] = {"type": StateType(self.type).value}
            if self.global_state is not None:
                out["global"] = _encode(self.global_state)
            populated = [s.to_dict() for s in self.streams if s.holds_value]
            if populated:
                out["streams"] = populated
            return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> State:
        """Build a state from its JSON form; None gives an empty stream state."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("state must be a JSON object")
        raw_type = data.get("type") or StateType.STREAM.value
        try:
            state_type = StateType(raw_type)
        except ValueError as err:
            raise ValueError(f"invalid state type [{raw_type}]") from err
        return cls(
            type=state_type,
            global_state=data.get("global"),
            streams=[StreamState.from_dict(s) for s in data.get("streams") or []],
        )

    def log_state(self) -> None:
        """Write the state to state_file, or log it when no file is set."""
        with self._lock:
            if self.is_zero():
                logger.info("state is empty")
                return
            text = json.dumps(self.to_dict(), default=str)
            if self.state_file is None:
                logger.info("state: %s", text)
                return
            try:
                with open(self.state_file, "w", encoding="utf-8") as handle:
                    handle.write(text)
            except OSError as err:
                raise OSError(f"failed to create state file: {err}") from err


@dataclass
class GlobalState:
    """State shared by streams, together with the streams it belongs to."""

    state: Any = None
    streams: HashSet[str] = field(default_factory=HashSet)

    def _is_empty(self) -> bool:
        check = getattr(self.state, "is_empty", None)
        if callable(check):
            return bool(check())
        return not self.state

    def to_dict(self) -> dict[str, Any] | None:
        """Return the JSON form; None when the inner state is empty."""
        if self._is_empty():
            return None
        return {"state": _encode(self.state), "streams": self.streams.to_list()}

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any] | None, state_factory: Callable[[Any], Any]
    ) -> GlobalState:
        """Build from the JSON form, building the inner state with state_factory."""
        if data is None:
            return cls(state=state_factory(None))
        if not isinstance(data, Mapping):
            raise ValueError("global state must be a JSON object")
        return cls(
            state=state_factory(data.get("state")),
            streams=HashSet(*(data.get("streams") or [])),
        )