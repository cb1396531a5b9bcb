"""Pool of destination writer threads fed with records by source drivers."""

from __future__ import annotations

import copy
import logging
import queue
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from olake.enums import AdapterType, WriterConfig
from olake.fields import Fields, reformat_record
from olake.interface import Writer
from olake.records import RawRecord

logger = logging.getLogger(__name__)

WriterFactory = Callable[[], Writer]

_REGISTERED_WRITERS: dict[AdapterType, WriterFactory] = {}
_CLOSED = object()
_POLL_SECONDS = 0.05


def register_writer(adapter_type: AdapterType, factory: WriterFactory) -> None:
    """Make a destination type available to writer pools."""
    _REGISTERED_WRITERS[AdapterType(adapter_type)] = factory


@dataclass
class Options:
    """Settings of one writer thread."""

    identifier: str = ""
    number: int = 0
    backfill: bool = False
    done: threading.Event | None = None


class ThreadEvent:
    """Handle used by a driver to feed one writer thread."""

    def __init__(self, records: queue.Queue[Any], stopped: threading.Event) -> None:
        self._records = records
        self._stopped = stopped
        self._closed = False

    def insert(self, record: RawRecord) -> None:
        """Hand a record to the writer thread; raise if the thread has stopped."""
        while True:
            if self._stopped.is_set():
                raise RuntimeError("main writer closed")
            try:
                self._records.put(record, timeout=_POLL_SECONDS)
                return
            except queue.Full:
                continue

    def close(self) -> None:
        """Signal that no more records will be inserted."""
        if self._closed:
            return
        self._closed = True
        while not self._stopped.is_set():
            try:
                self._records.put(_CLOSED, timeout=_POLL_SECONDS)
                return
            except queue.Full:
                continue


class WriterPool:
    """Starts writer threads for streams and tracks their records and errors."""

    def __init__(
        self,
        factory: WriterFactory,
        config: Any,
        state: Any = None,
        batch_size: int = 10000,
    ) -> None:
        self._factory = factory
        self._config = config
        self._state = state
        self._batch_size = batch_size
        self._lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self._total_records = 0
        self._record_count = 0
        self._thread_counter = 0
        self._threads: list[threading.Thread] = []
        self._error: BaseException | None = None

    @property
    def active_threads(self) -> int:
        """Number of writer threads currently running."""
        with self._counter_lock:
            return self._thread_counter

    def _init_writer(self, stream: Any, opts: Options) -> Writer:
        with self._lock:
            writer = self._factory()
            writer.set_config(copy.deepcopy(self._config))
            writer.setup(stream, opts)
            return writer

    def _normalize(
        self, writer: Writer, fields: Fields, stream: Any, record: RawRecord
    ) -> dict[str, Any]:
        flattened = writer.flattener()(record.data)
        change, type_change, mutations = fields.process(flattened)
        if change or type_change:
            with self._lock:
                stream.schema.override(fields.to_properties())
            try:
                writer.evolve_schema(
                    change, type_change, mutations.to_properties(), flattened, record.olake_timestamp
                )
            except Exception as err:
                raise RuntimeError(f"failed to evolve schema: {err}") from err
        reformat_record(fields, flattened)
        return flattened

    def _increment(self) -> int:
        with self._counter_lock:
            self._record_count += 1
            return self._record_count

    def _run_thread(
        self,
        stream: Any,
        opts: Options,
        fields: Fields,
        records: queue.Queue[Any],
        stopped: threading.Event,
    ) -> None:
        writer: Writer | None = None
        with self._counter_lock:
            self._thread_counter += 1
        try:
            writer = self._init_writer(stream, opts)
            while True:
                item = records.get()
                if item is _CLOSED:
                    break
                record = replace(item, olake_timestamp=datetime.now(timezone.utc))
                if writer.normalization():
                    record.data = self._normalize(writer, fields, stream, record)
                writer.write(record)
                count = self._increment()
                if self._state is not None and self._batch_size > 0 and count % self._batch_size == 0:
                    self._state.log_state()
        except Exception as err:
            logger.error("main writer closed, with error: %s", err)
            with self._counter_lock:
                if self._error is None:
                    self._error = err
        finally:
            with self._lock:
                stopped.set()
                if opts.done is not None:
                    opts.done.set()
                if writer is not None:
                    try:
                        writer.close()
                    except Exception as err:
                        logger.error("failed to close writer: %s", err)
            with self._counter_lock:
                self._thread_counter -= 1

    def new_thread(self, stream: Any, options: Options | None = None) -> ThreadEvent:
        """Start a writer thread for stream and return the handle that feeds it."""
        opts = options if options is not None else Options()
        fields = Fields.from_schema(stream.schema)
        records: queue.Queue[Any] = queue.Queue(maxsize=1)
        stopped = threading.Event()
        worker = threading.Thread(
            target=self._run_thread,
            args=(stream, opts, fields, records, stopped),
            daemon=True,
        )
        with self._counter_lock:
            self._threads.append(worker)
        worker.start()
        return ThreadEvent(records, stopped)

    def synced_records(self) -> int:
        """Return the number of records written so far."""
        with self._counter_lock:
            return self._record_count

    def add_records_to_sync(self, count: int) -> None:
        """Add to the number of records expected to be synced."""
        with self._counter_lock:
            self._total_records += count

    def get_records_to_sync(self) -> int:
        """Return the number of records expected to be synced."""
        with self._counter_lock:
            return self._total_records

    def wait(self) -> None:
        """Wait for every writer thread; raise the first error one of them hit."""
        while True:
            with self._counter_lock:
                pending = [t for t in self._threads if t.is_alive()]
            if not pending:
                break
            for worker in pending:
                worker.join()
        if self._error is not None:
            raise self._error


def new_writer_pool(
    config: WriterConfig | Mapping[str, Any], state: Any = None, batch_size: int = 10000
) -> WriterPool:
    """Check the destination described by config and return a pool for it."""
    if not isinstance(config, WriterConfig):
        config = WriterConfig.from_dict(config)
    factory = _REGISTERED_WRITERS.get(config.type)
    if factory is None:
        raise ValueError(f"invalid destination type has been passed [{config.type.value}]")
    adapter = factory()
    adapter.set_config(copy.deepcopy(config.writer_config))
    try:
        adapter.check()
    except Exception as err:
        raise ValueError(f"failed to test destination: {err}") from err
    return WriterPool(factory, config.writer_config, state, batch_size)