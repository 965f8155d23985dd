from __future__ import annotations

import argparse
from dataclasses import replace
import logging
import sys

from storcli_collector import __version__
from storcli_collector.collector import StorcliCollector
from storcli_collector.config import AppConfig, OUTPUT_FORMATS, load_config
from storcli_collector.errors import CollectorError
from storcli_collector.logging_utils import configure_logging, resolve_log_level
from storcli_collector.output import write_output
from storcli_collector.storcli import StorcliClient, resolve_storcli_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export MegaRAID controller health from StorCLI for the node_exporter textfile collector"
    )
    parser.add_argument(
        "--config",
        help="Path to CFG configuration file",
    )
    parser.add_argument(
        "--storcli-path",
        "--storcli_path",
        dest="storcli_path",
        help="Absolute path to the StorCLI binary (default /opt/MegaRAID/storcli/storcli64, "
             "falling back to storcli in PATH)",
    )
    parser.add_argument(
        "--storcli-dontfailover",
        "--storcli_dontfailover",
        dest="storcli_dontfailover",
        action="store_true",
        default=None,
        help="Don't fall back to PATH if the StorCLI path is missing",
    )
    parser.add_argument(
        "--outfile",
        help="Text file to write output to. Defaults to standard output.",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        help="Exposition format (default prometheus)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable debug logging (-v) or trace logging (-vv)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    storcli = config.storcli
    if args.storcli_path:
        storcli = replace(storcli, path=args.storcli_path)
    if args.storcli_dontfailover:
        storcli = replace(storcli, dont_failover=True)
    output = config.output
    if args.outfile:
        output = replace(output, outfile=args.outfile)
    if args.format:
        output = replace(output, format=args.format)
    return replace(config, storcli=storcli, output=output)


def run(config: AppConfig) -> None:
    path = resolve_storcli_path(config.storcli.path, config.storcli.dont_failover)
    collector = StorcliCollector(StorcliClient(path), config.storcli.status_check)
    registry = collector.collect()
    # Rendered in full before anything is written.
    text = registry.render(config.output.format)
    write_output(text, config.output.outfile)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(resolve_log_level(args.verbose, args.log_level or "WARNING"))
    logger = logging.getLogger("storcli_collector")

    try:
        config = apply_overrides(load_config(args.config), args)
        if args.log_level is None and args.verbose == 0:
            logging.getLogger().setLevel(resolve_log_level(0, config.logging.level))
        run(config)
    except CollectorError as exc:
        logger.error("%s", exc)
        logger.debug("Error details: %s", exc.to_dict())
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
