"""The check, discover and sync commands and their command line."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any

from olake.enums import ConnectionStatus, MessageType, SyncMode, WriterConfig
from olake.interface import Driver, is_change_stream_driver
from olake.state import State, StateType
from olake.stream import (
    Catalog,
    ConfiguredStream,
    Message,
    StatusRow,
    StreamMetadata,
    log_catalog,
    streams_to_map,
)
from olake.utils import _go_sprint, unmarshal_file
from olake.writers import new_writer_pool

logger = logging.getLogger(__name__)

CONCURRENT_STREAM_EXECUTION = 6
DEFAULT_BATCH_SIZE = 10000
_COMMANDS = ("check", "discover", "sync")


def _load_config(driver: Driver, config_path: str | None) -> None:
    if not config_path:
        raise ValueError("--config not passed")
    driver.set_config(unmarshal_file(config_path))


def _artifact_path(config_path: str, name: str) -> Path:
    return Path(config_path).parent / name


def _validate_catalog(driver: Driver, catalog: Catalog) -> None:
    streams_map = streams_to_map(*driver.discover(False))
    invalid: list[str] = []
    missing: list[str] = []
    for stream in catalog.streams:
        source = streams_map.get(stream.id())
        if source is None:
            missing.append(stream.id())
            continue
        try:
            stream.validate(source)
        except ValueError as err:
            logger.error("%s", err)
            invalid.append(stream.id())
    if invalid and missing:
        raise ValueError(
            f"found missing streams: {_go_sprint(missing)} "
            f"and invalid streams: {_go_sprint(invalid)}"
        )
    if invalid:
        raise ValueError(f"found invalid streams: {_go_sprint(invalid)}")
    if missing:
        raise ValueError(f"found missing streams: {_go_sprint(missing)}")


def check(driver: Driver, config_path: str, catalog_path: str | None = None) -> Message:
    """Check the connection, or the catalog against the source, and report the outcome."""
    _load_config(driver, config_path)
    catalog = Catalog.from_dict(unmarshal_file(catalog_path)) if catalog_path else None

    status = StatusRow(status=ConnectionStatus.SUCCEEDED)
    try:
        if catalog is not None:
            _validate_catalog(driver, catalog)
        else:
            driver.check()
    except Exception as err:
        status.status = ConnectionStatus.FAILED
        status.message = str(err)
    message = Message(type=MessageType.CONNECTION_STATUS, connection_status=status)
    logger.info("%s", json.dumps(message.to_dict()))
    return message


def _discover(driver: Driver, config_path: str, save: bool) -> Catalog:
    _load_config(driver, config_path)
    driver.setup()
    streams = driver.discover(True)
    if not streams:
        raise ValueError("no streams found in connector")
    catalog = log_catalog(streams)
    if save:
        _artifact_path(config_path, "streams.json").write_text(
            json.dumps(catalog.to_dict(), indent="\t"), encoding="utf-8"
        )
    return catalog


def discover(driver: Driver, config_path: str) -> Catalog:
    """Discover the source streams, log them as a catalog and save it next to the config."""
    return _discover(driver, config_path, save=True)


def _select_streams(
    driver: Driver, catalog: Catalog
) -> tuple[list[ConfiguredStream], list[ConfiguredStream]]:
    streams_map = streams_to_map(*driver.discover(False))
    selected_map: dict[str, StreamMetadata] = {
        f"{namespace}.{meta.stream_name}": meta
        for namespace, metas in (catalog.selected_streams or {}).items()
        for meta in metas
    }
    selected: list[str] = []
    cdc_streams: list[ConfiguredStream] = []
    standard_streams: list[ConfiguredStream] = []
    for elem in catalog.streams:
        metadata = selected_map.get(f"{elem.namespace}.{elem.name}")
        if catalog.selected_streams is not None and metadata is None:
            logger.warning(
                "Skipping stream %s.%s; not in selected streams.", elem.name, elem.namespace
            )
            continue
        source = streams_map.get(elem.id())
        if source is None:
            logger.warning("Skipping; Configured Stream %s not found in source", elem.id())
            continue
        try:
            elem.validate(source)
        except ValueError as err:
            logger.warning(
                "Skipping; Configured Stream %s found invalid due to reason: %s", elem.id(), err
            )
            continue
        elem.stream_metadata = metadata or StreamMetadata()
        selected.append(elem.id())
        if elem.sync_mode == SyncMode.CDC:
            cdc_streams.append(elem)
        else:
            standard_streams.append(elem)
    logger.info("Valid selected streams are %s", ", ".join(selected))
    return cdc_streams, standard_streams


def _sync(
    driver: Driver,
    config_path: str,
    destination_path: str,
    catalog_path: str,
    state_path: str | None,
    batch_size: int,
    save: bool,
) -> int:
    if not config_path:
        raise ValueError("--config not passed")
    if not destination_path:
        raise ValueError("--destination not passed")
    if not catalog_path:
        raise ValueError("--catalog not passed")

    driver.set_config(unmarshal_file(config_path))
    destination = WriterConfig.from_dict(unmarshal_file(destination_path))
    catalog = Catalog.from_dict(unmarshal_file(catalog_path))
    state = (
        State.from_dict(unmarshal_file(state_path)) if state_path else State(type=StateType.STREAM)
    )
    if save:
        state.state_file = _artifact_path(config_path, "state.json")
    logger.info("Running sync with state: %s", json.dumps(state.to_dict(), default=str))

    pool = new_writer_pool(destination, state, batch_size)
    driver.setup()
    cdc_streams, standard_streams = _select_streams(driver, catalog)
    driver.setup_state(state)

    def change_stream() -> None:
        if not driver.change_stream_supported():
            return
        if not is_change_stream_driver(driver):
            raise RuntimeError(f"{driver.type()} does not implement ChangeStreamDriver")
        logger.info("Starting ChangeStream process in driver")
        try:
            driver.run_change_stream(pool, *cdc_streams)  # type: ignore[attr-defined]
        except Exception as err:
            raise RuntimeError(f"error occurred while reading records: {err}") from err

    def read_stream(stream: ConfiguredStream) -> None:
        mode = stream.sync_mode.value if stream.sync_mode else ""
        logger.info("Reading stream[%s] in %s", stream.id(), mode)
        started = time.monotonic()
        try:
            driver.read(pool, stream)
        except Exception as err:
            raise RuntimeError(f"error occurred while reading records: {err}") from err
        logger.info(
            "Finished reading stream %s[%s] in %.3fs",
            stream.name,
            stream.namespace,
            time.monotonic() - started,
        )

    first_error: BaseException | None = None
    with ThreadPoolExecutor(max_workers=CONCURRENT_STREAM_EXECUTION) as executor:
        futures = [executor.submit(change_stream)]
        futures.extend(executor.submit(read_stream, stream) for stream in standard_streams)
        for future in as_completed(futures):
            error = future.exception()
            if error is not None and first_error is None:
                first_error = error
    if first_error is not None:
        raise first_error

    try:
        pool.wait()
    except Exception as err:
        raise RuntimeError(f"error occurred in writer pool: {err}") from err

    logger.info("Total records read: %d", pool.synced_records())
    state.log_state()
    return pool.synced_records()


def sync(
    driver: Driver,
    config_path: str,
    destination_path: str,
    catalog_path: str,
    state_path: str | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Read the selected catalog streams into the destination; return the records written."""
    return _sync(
        driver, config_path, destination_path, catalog_path, state_path, batch_size, save=True
    )


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser of the command line."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default="", help="(Required) Config for connector")
    common.add_argument(
        "--destination", default="", help="(Required) Destination config for connector"
    )
    common.add_argument("--catalog", default="", help="(Required) Catalog for connector")
    common.add_argument("--state", default="", help="(Required) State for connector")
    common.add_argument(
        "--batch", type=int, default=DEFAULT_BATCH_SIZE, help="(Optional) Batch size for connector"
    )
    common.add_argument(
        "--no-save",
        action="store_true",
        help="(Optional) Flag to skip logging artifacts in file",
    )
    parser = argparse.ArgumentParser(prog="olake", description="root command")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("check", parents=[common], help="check command")
    sub.add_parser("discover", parents=[common], help="discover command")
    sub.add_parser("sync", parents=[common], help="Olake sync command")
    return parser


def run(driver: Driver, argv: Sequence[str] | None = None) -> int:
    """Run the command line against driver; return the exit status."""
    parser = build_parser()
    args_list = list(sys.argv[1:] if argv is None else argv)
    if not args_list:
        parser.print_help()
        return 0
    first = args_list[0]
    if not first.startswith("-") and first not in _COMMANDS:
        logger.error(
            "'%s' is an invalid command. Use 'olake --help' to display usage guide", first
        )
        return 1
    args = parser.parse_args(args_list)
    if args.command is None:
        parser.print_help()
        return 0
    save = not args.no_save
    try:
        if args.command == "check":
            message = check(driver, args.config, args.catalog or None)
            print(json.dumps(message.to_dict()))
        elif args.command == "discover":
            _discover(driver, args.config, save)
        else:
            _sync(
                driver,
                args.config,
                args.destination,
                args.catalog,
                args.state or None,
                args.batch,
                save,
            )
    except Exception as err:
        logger.error("%s", err)
        return 1
    return 0


def _unused(*_: Any) -> None:
    """Placeholder-free hook kept private; not part of the command line."""