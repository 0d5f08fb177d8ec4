from __future__ import annotations

import argparse
import asyncio
import locale
import sys
from pathlib import Path

from dotenv import load_dotenv

from datastream.config.loader import ConfigError, load_config, resolve_config_path
from datastream.logging.error_log import ErrorLogBuffer
from datastream.logging.init import log_summary, set_debug, setup_logging
from datastream.models.dataset_state import DatasetState
from datastream.services.ingest import load_dataset, select_location
from datastream.services.progress import ByteProgressBar
from datastream.services.summary import render_summary_body
from datastream.tabular.reader import IngestError

"""CLI entrypoint.

Flow:
- Load ``.env`` and the YAML config
- Load one CSV into a DatasetState (byte progress bar on a TTY)
- List the monitoring locations, or summarise one location's water temperature

Whether an empty result is an error is decided here, not in the core:
a location without valid readings exits with EXIT_NO_READINGS.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_NO_READINGS = 2


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load ``.env`` using python-dotenv (e.g. DATASTREAM_CONFIG)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="DataStream CSV water-temperature summariser")
    p.add_argument("file", type=Path, help="DataStream CSV export")
    p.add_argument("--location", help="MonitoringLocationID to summarise")
    p.add_argument("--list-locations", action="store_true", help="Print the monitoring locations and exit")
    context = p.add_mutually_exclusive_group()
    context.add_argument(
        "--isolated", dest="isolated", action="store_true", default=None,
        help="Decode in a worker process",
    )
    context.add_argument(
        "--in-process", dest="isolated", action="store_false",
        help="Decode on the main process",
    )
    p.add_argument("--config", type=Path, default=None, help="Config YAML path")
    p.add_argument("--error-log", action="store_true", help="Write skipped rows to logs/errors-*.log")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む (テストから [] を渡せるように)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning(f"locale: {e}, sorting locations in the C locale")

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    try:
        config_path, required = resolve_config_path(args.config)
        settings = load_config(config_path, required=required)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    error_log = ErrorLogBuffer(Path(settings.error_log_dir)) if args.error_log else None
    state = DatasetState()
    logger.info(f"Reading: {args.file}")
    try:
        with ByteProgressBar(args.file.name) as bar:
            asyncio.run(
                load_dataset(
                    args.file,
                    state,
                    use_isolated_context=args.isolated,
                    on_progress=bar,
                    error_log=error_log,
                    settings=settings,
                )
            )
    except IngestError as e:
        logger.error(f"ingest: {e}")
        return EXIT_FATAL
    finally:
        if error_log is not None:
            written = error_log.flush()
            if written is not None:
                logger.info(f"row issues written to {written}")

    if args.list_locations or not args.location:
        for location in state.locations:
            print(location.display_name)
        return EXIT_SUCCESS

    result = select_location(state, args.location, characteristic=settings.characteristic_name)
    if result.count == 0:
        logger.error(
            f"no valid '{settings.characteristic_name}' readings for location={args.location}"
        )
        return EXIT_NO_READINGS

    log_summary(render_summary_body(result))
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
