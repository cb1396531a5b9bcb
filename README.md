# olake

`olake` is a toolkit for writing database replication connectors. It holds
the shared pieces that a source driver and a destination writer need to move
records from one system to another. It needs Python 3.11 or newer and has no
third-party dependencies.

## What is in the package

- **Streams and catalogs** (`olake.stream`): `Stream` describes a table or
  collection with its `TypeSchema`, supported sync modes, primary keys and
  cursor fields. `ConfiguredStream` is a stream as chosen in a catalog;
  `ConfiguredStream.validate` raises `ValueError` when the chosen sync mode,
  cursor field or primary keys do not fit the source stream. `Catalog`
  groups configured streams with the selected-stream metadata
  (`StreamMetadata`), and `get_wrapped_catalog` builds a catalog in which
  every stream is selected. `Message` and `StatusRow` are the output
  messages of the commands.
- **Enumerations** (`olake.enums`): `DataType`, `SyncMode`, `MessageType`,
  `ConnectionStatus`, `AdapterType`, `Action`, and `WriterConfig`, the
  destination configuration read from `{"type": ..., "writer": ...}`.
- **Typed schemas** (`olake.type_schema`): `TypeSchema` maps each column to a
  `Property`, a set of `DataType` values; `Property.data_type` gives the first
  non-null type and `Property.nullable` tells whether null is among them.
- **Schema evolution** (`olake.fields`): `Fields.process` folds a record into
  the known fields, widens types along a fixed type hierarchy
  (`get_common_ancestor_type`) and reports new columns, type changes and the
  changed fields. `reformat_record` converts a record's values in place to
  their fields' types. `resolve` infers a stream's column types from sample
  objects, marking columns missing from some samples as nullable.
- **Value conversion** (`olake.reformat`, `olake.datatype`): `reformat_value`
  coerces a value to a `DataType` (raising `NullValueError` for the null
  type); `reformat_date` treats integers as Unix seconds and parses strings
  with `parse_string_timestamp`; `reformat_int32`, `reformat_int64`,
  `reformat_float32` and `reformat_float64` convert numbers and numeric text.
  `type_from_value` detects the data type of a Python value, including the
  precision of timestamps, and `maximum_on_data_type` compares two values
  read as timestamps or 64-bit integers.
- **Flattening** (`olake.flatten`): `Flattener` and `PassthroughFlattener`
  turn a record into a flat one with keys normalised by `reformat_key`
  (lower case, every non-alphanumeric character replaced with `_`), writing
  lists and mappings as JSON text.
- **Records** (`olake.records`): `RawRecord` holds a record with its id,
  operation type and timestamps; `RawRecord.to_debezium_format` renders it as
  a Debezium-style JSON document.
- **Sync state** (`olake.state`): `State` keeps per-stream cursors and pending
  `Chunk` ranges plus an optional global state, converts to and from plain
  dictionaries, and writes itself to `State.state_file` whenever it changes
  (or logs itself when no file is set). `GlobalState` pairs a shared state
  with the streams it belongs to.
- **Writing** (`olake.writers`): `WriterPool.new_thread` starts a writer
  thread for a stream and returns a `ThreadEvent` whose `insert` feeds it
  records and whose `close` ends it. With normalization on, each record is
  flattened, the schema is evolved and values are reformatted before writing.
  The pool counts synced records and `WriterPool.wait` raises the first error
  a thread hit. Destinations are plugged in with `register_writer`, and
  `new_writer_pool` checks a destination before returning a pool.
- **Connector contracts** (`olake.interface`): abstract `Connector`,
  `Driver`, `ChangeStreamDriver` and `Writer` classes that sources and
  destinations implement.
- **Commands** (`olake.commands`): `check`, `discover` and `sync` run a
  driver end to end; `build_parser` and `run` wire them to a command line for
  a given driver.
- **Helpers**: `HashSet` (`olake.sets`), a set keyed by a string hash so that
  unhashable values can be members; bounded concurrency with `CxGroup`,
  `concurrent`, `concurrent_iter` and `concurrent_in_group`
  (`olake.concurrent`); error gathering with `err_exec`,
  `err_exec_sequential` and `err_exec_format` (`olake.errexec`); background
  execution with restart on failure via `run` and `run_with_restart`
  (`olake.safego`); SSL settings validation with `SSLConfig` and
  `validate_ssl` (`olake.sslconfig`); and utilities such as
  `stream_identifier`, `get_keys_hash`, `ulid` and `timestamped_file_name`
  (`olake.utils`).

## Building a connector

A source driver subclasses `olake.interface.Driver` and implements
`set_config`, `spec`, `check`, `type`, `setup`, `discover`, `read`,
`change_stream_supported` and `setup_state`. A driver that reads change
streams also subclasses `ChangeStreamDriver` and implements
`run_change_stream` and `state_type`.

A destination subclasses `olake.interface.Writer` and implements
`set_config`, `spec`, `check`, `type`, `setup`, `write`, `normalization`,
`flattener`, `evolve_schema` and `close`, then registers a factory for its
adapter type:

```python
from olake.enums import AdapterType
from olake.writers import register_writer

register_writer(AdapterType.PARQUET, MyParquetWriter)
```

To make the driver a program, hand it to `olake.commands.run` from your own
entry point. `run` returns the exit status:

```python
import sys

from olake.commands import run
from my_connector import MyDriver


def main() -> None:
    sys.exit(run(MyDriver(), sys.argv[1:]))
```

That program then offers three sub-commands, each reading JSON files:

- `check --config FILE [--catalog FILE]`: checks the connection, or, with a
  catalog, validates its streams against the discovered source streams, and
  prints a `CONNECTION_STATUS` message with `SUCCEEDED` or `FAILED`.
- `discover --config FILE`: sets up the driver, discovers its streams, logs
  them as a catalog and writes it to `streams.json` next to the config file.
- `sync --config FILE --destination FILE --catalog FILE [--state FILE]
  [--batch N]`: reads every selected, valid catalog stream into the
  destination, at most six streams at a time, with change-stream streams
  handed to the driver together. The state is written to `state.json` next
  to the config file as it changes and after every `--batch` records
  (default 10000).

`--no-save` keeps `discover` and `sync` from writing those files.

## What the package does not do

The package contains no source drivers and no destination writers: there is
no database client, no Parquet or Iceberg writer and no object-storage
upload. Those come from the connectors built on top of it. The command line
has no `spec` sub-command, and there is no program to run on its own:
`olake.commands.run` always needs a driver.

## Small examples

```python
from olake.flatten import reformat_key
from olake.utils import stream_identifier

stream_identifier("users", "public")   # "public.users"
stream_identifier("users", "")         # "users"
reformat_key("User Name")              # "user_name"
```

## Running the tests

Install the `test` extra and run `pytest` from the project directory.