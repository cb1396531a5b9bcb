"""Abstract contracts for source drivers and destination writers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from olake.records import RawRecord

FlattenFunction = Callable[[dict[str, Any]], dict[str, Any]]


class Connector(ABC):
    """Something configured from a JSON document that can check its connection."""

    @abstractmethod
    def set_config(self, data: Mapping[str, Any]) -> None:
        """Load and keep the decoded configuration."""

    @abstractmethod
    def spec(self) -> Any:
        """Return a description of the configuration."""

    @abstractmethod
    def check(self) -> None:
        """Raise if the connection cannot be established."""

    @abstractmethod
    def type(self) -> str:
        """Return the connector's type name."""


class Driver(Connector):
    """A source that discovers streams and reads them."""

    @abstractmethod
    def setup(self) -> None:
        """Set up the client without checking it."""

    @abstractmethod
    def discover(self, discover_schema: bool) -> list[Any]:
        """Return the source streams; cached after the first call."""

    @abstractmethod
    def read(self, pool: Any, stream: Any) -> None:
        """Read one stream in full-refresh or incremental mode into the pool."""

    @abstractmethod
    def change_stream_supported(self) -> bool:
        """Return True if the driver can run change streams."""

    @abstractmethod
    def setup_state(self, state: Any) -> None:
        """Attach the sync state to the driver."""


class ChangeStreamDriver(ABC):
    """A driver able to read change streams for several streams at once."""

    @abstractmethod
    def run_change_stream(self, pool: Any, *streams: Any) -> None:
        """Read changes of the given streams into the pool."""

    @abstractmethod
    def state_type(self) -> Any:
        """Return the kind of state the change stream uses."""


class Writer(Connector):
    """A destination that receives records of one stream."""

    @abstractmethod
    def setup(self, stream: Any, options: Any) -> None:
        """Prepare the writer for a stream."""

    @abstractmethod
    def write(self, record: RawRecord) -> None:
        """Write one record."""

    @abstractmethod
    def normalization(self) -> bool:
        """Return True if records are flattened and typed before writing."""

    @abstractmethod
    def flattener(self) -> FlattenFunction:
        """Return the function that flattens a record."""

    @abstractmethod
    def evolve_schema(
        self,
        change: bool,
        type_change: bool,
        mutations: Mapping[str, Any],
        record: dict[str, Any],
        olake_timestamp: datetime,
    ) -> None:
        """React to new columns or changed column types."""

    @abstractmethod
    def close(self) -> None:
        """Flush and release the writer."""


def is_change_stream_driver(driver: object) -> bool:
    """Return True if driver implements the change stream contract."""
    return isinstance(driver, ChangeStreamDriver)