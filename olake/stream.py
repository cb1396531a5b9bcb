"""Streams, configured streams, catalogs and the messages that carry them."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from olake.enums import ConnectionStatus, DataType, MessageType, SyncMode
from olake.sets import HashSet
from olake.type_schema import TypeSchema
from olake.utils import _go_sprint, stream_identifier

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    return to_dict() if callable(to_dict) else value


def _sync_mode(value: Any) -> SyncMode | None:
    return SyncMode(value) if value else None


@dataclass
class StreamMetadata:
    """Per-stream selection settings taken from the catalog."""

    split_column: str = ""
    partition_regex: str = ""
    stream_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the metadata."""
        return {
            "split_column": self.split_column,
            "partition_regex": self.partition_regex,
            "stream_name": self.stream_name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StreamMetadata:
        """Build metadata from its JSON form."""
        return cls(
            split_column=data.get("split_column") or "",
            partition_regex=data.get("partition_regex") or "",
            stream_name=data.get("stream_name") or "",
        )


@dataclass(eq=False)
class Stream:
    """A source stream: its name, namespace, schema and sync capabilities."""

    name: str = ""
    namespace: str = ""
    schema: TypeSchema = field(default_factory=TypeSchema)
    supported_sync_modes: HashSet[SyncMode] = field(default_factory=HashSet)
    source_defined_primary_key: HashSet[str] = field(default_factory=HashSet)
    available_cursor_fields: HashSet[str] = field(default_factory=HashSet)
    additional_properties: str = ""
    additional_properties_schema: dict[str, Any] | None = None
    sync_mode: SyncMode | None = None

    def id(self) -> str:
        """Return 'namespace.name', or the name when there is no namespace."""
        return stream_identifier(self.name, self.namespace)

    def with_sync_mode(self, *modes: SyncMode) -> Stream:
        """Add supported sync modes and return the stream."""
        self.supported_sync_modes.insert(*(SyncMode(mode) for mode in modes))
        return self

    def with_primary_key(self, *keys: str) -> Stream:
        """Add primary key columns and return the stream."""
        self.source_defined_primary_key.insert(*keys)
        return self

    def with_cursor_field(self, *columns: str) -> Stream:
        """Add available cursor columns and return the stream."""
        self.available_cursor_fields.insert(*columns)
        return self

    def with_schema(self, schema: TypeSchema) -> Stream:
        """Replace the type schema and return the stream."""
        self.schema = schema
        return self

    def upsert_field(self, column: str, data_type: DataType, nullable: bool) -> None:
        """Add a type (and null, if nullable) to a column of the schema."""
        types = [DataType(data_type)]
        if nullable:
            types.append(DataType.NULL)
        self.schema.add_types(column, *types)

    def wrap(self) -> ConfiguredStream:
        """Return a configured stream around this stream."""
        return ConfiguredStream(stream=self)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the stream."""
        out: dict[str, Any] = {}
        if self.name:
            out["name"] = self.name
        if self.namespace:
            out["namespace"] = self.namespace
        out["type_schema"] = self.schema.to_dict()
        out["supported_sync_modes"] = [SyncMode(m).value for m in self.supported_sync_modes]
        out["source_defined_primary_key"] = self.source_defined_primary_key.to_list()
        out["available_cursor_fields"] = self.available_cursor_fields.to_list()
        if self.additional_properties:
            out["additional_properties"] = self.additional_properties
        if self.additional_properties_schema:
            out["additional_properties_schema"] = self.additional_properties_schema
        if self.sync_mode:
            out["sync_mode"] = self.sync_mode.value
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Stream:
        """Build a stream from its JSON form."""
        return cls(
            name=data.get("name") or "",
            namespace=data.get("namespace") or "",
            schema=TypeSchema.from_dict(data.get("type_schema")),
            supported_sync_modes=HashSet(
                *(SyncMode(m) for m in data.get("supported_sync_modes") or [])
            ),
            source_defined_primary_key=HashSet(*(data.get("source_defined_primary_key") or [])),
            available_cursor_fields=HashSet(*(data.get("available_cursor_fields") or [])),
            additional_properties=data.get("additional_properties") or "",
            additional_properties_schema=data.get("additional_properties_schema") or None,
            sync_mode=_sync_mode(data.get("sync_mode")),
        )


@dataclass(eq=False)
class ConfiguredStream:
    """A stream as chosen in the catalog, with its cursor and selection metadata."""

    stream: Stream | None = None
    cursor_field: str = ""
    exclude_columns: list[str] = field(default_factory=list)
    stream_metadata: StreamMetadata = field(default_factory=StreamMetadata)
    initial_cursor_state_value: Any = None

    def _source(self) -> Stream:
        if self.stream is None:
            raise ValueError("configured stream has no stream")
        return self.stream

    def id(self) -> str:
        """Return the identifier of the underlying stream."""
        return self._source().id()

    @property
    def name(self) -> str:
        """Name of the underlying stream."""
        return self._source().name

    @property
    def namespace(self) -> str:
        """Namespace of the underlying stream."""
        return self._source().namespace

    @property
    def schema(self) -> TypeSchema:
        """Type schema of the underlying stream."""
        return self._source().schema

    @property
    def sync_mode(self) -> SyncMode | None:
        """Sync mode chosen for the stream."""
        return self._source().sync_mode

    @property
    def supported_sync_modes(self) -> HashSet[SyncMode]:
        """Sync modes the stream supports."""
        return self._source().supported_sync_modes

    @property
    def cursor(self) -> str:
        """Column used as cursor."""
        return self.cursor_field

    def validate(self, source: Stream) -> None:
        """Raise ValueError if this configuration does not fit the source stream."""
        stream = self._source()
        if not source.supported_sync_modes.exists(stream.sync_mode):  # type: ignore[arg-type]
            mode = stream.sync_mode.value if stream.sync_mode else ""
            raise ValueError(
                f"invalid sync mode[{mode}]; valid are {source.supported_sync_modes}"
            )
        if stream.sync_mode == SyncMode.INCREMENTAL and not source.available_cursor_fields.exists(
            self.cursor_field
        ):
            raise ValueError(
                f"invalid cursor field [{self.cursor_field}]; "
                f"valid are {source.available_cursor_fields}"
            )
        if source.source_defined_primary_key.proper_subset_of(stream.source_defined_primary_key):
            missing = source.source_defined_primary_key.difference(
                stream.source_defined_primary_key
            ).to_list()
            raise ValueError(f"differnce found with primary keys: {_go_sprint(missing)}")

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the configured stream."""
        out: dict[str, Any] = {}
        if self.stream is not None:
            out["stream"] = self.stream.to_dict()
        if self.cursor_field:
            out["cursor_field"] = self.cursor_field
        if self.exclude_columns:
            out["exclude_columns"] = list(self.exclude_columns)
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConfiguredStream:
        """Build a configured stream from its JSON form."""
        raw = data.get("stream")
        return cls(
            stream=Stream.from_dict(raw) if raw is not None else None,
            cursor_field=data.get("cursor_field") or "",
            exclude_columns=list(data.get("exclude_columns") or []),
        )


@dataclass
class Catalog:
    """The streams to sync and, per namespace, which of them are selected."""

    streams: list[ConfiguredStream] = field(default_factory=list)
    selected_streams: dict[str, list[StreamMetadata]] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the catalog."""
        out: dict[str, Any] = {}
        if self.selected_streams:
            out["selected_streams"] = {
                namespace: [meta.to_dict() for meta in metas]
                for namespace, metas in self.selected_streams.items()
            }
        if self.streams:
            out["streams"] = [stream.to_dict() for stream in self.streams]
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Catalog:
        """Build a catalog from its JSON form."""
        if not isinstance(data, Mapping):
            raise ValueError("catalog must be a JSON object")
        selected = data.get("selected_streams")
        return cls(
            streams=[ConfiguredStream.from_dict(s) for s in data.get("streams") or []],
            selected_streams=(
                None
                if selected is None
                else {
                    namespace: [StreamMetadata.from_dict(m) for m in metas or []]
                    for namespace, metas in selected.items()
                }
            ),
        )


@dataclass
class StatusRow:
    """Result of a connection check."""

    status: ConnectionStatus | None = None
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the status."""
        out: dict[str, Any] = {}
        if self.status:
            out["status"] = ConnectionStatus(self.status).value
        if self.message:
            out["message"] = self.message
        return out


@dataclass
class Message:
    """An output message of a command."""

    type: MessageType
    log: Any = None
    connection_status: StatusRow | None = None
    state: Any = None
    catalog: Catalog | None = None
    action: Any = None
    spec: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty parts."""
        out: dict[str, Any] = {"type": MessageType(self.type).value}
        for key, value in (
            ("log", self.log),
            ("connectionStatus", self.connection_status),
            ("state", self.state),
            ("catalog", self.catalog),
            ("action", self.action),
        ):
            if value is not None:
                out[key] = _encode(value)
        if self.spec:
            out["spec"] = self.spec
        return out


def streams_to_map(*streams: Stream) -> dict[str, Stream]:
    """Index streams by their identifier."""
    return {stream.id(): stream for stream in streams}


def get_wrapped_catalog(streams: Iterable[Stream]) -> Catalog:
    """Return a catalog holding every stream, each one selected."""
    catalog = Catalog(streams=[], selected_streams={})
    for stream in streams:
        catalog.streams.append(ConfiguredStream(stream=stream))
        catalog.selected_streams.setdefault(stream.namespace, []).append(  # type: ignore[union-attr]
            StreamMetadata(stream_name=stream.name, partition_regex="")
        )
    return catalog


def log_catalog(streams: Iterable[Stream]) -> Catalog:
    """Log a catalog message for the streams and return the catalog."""
    message = Message(type=MessageType.CATALOG, catalog=get_wrapped_catalog(streams))
    logger.info(json.dumps(message.to_dict()))
    return message.catalog  # type: ignore[return-value]