#!/usr/bin/env python3

"""
ICP Lookup - Main Entry Point
Queries icp.chinaz.com for the ICP registration of each domain
"""

import argparse
import logging
import sys
from typing import List, Optional, TextIO

from icp_lookup.collector import IcpCollector
from icp_lookup.config_loader import load_config
from icp_lookup.domain_input import collect_domains
from icp_lookup.output_writer import ResultWriter


def setup_logging(config) -> None:
    """Configure logging for the application"""
    log_level = getattr(logging, config.get_log_level(), logging.INFO)

    # Debug tracing goes to stdout next to the results; otherwise stderr
    stream = sys.stdout if config.is_debug() else sys.stderr
    handlers: List[logging.Handler] = [logging.StreamHandler(stream)]

    log_file = config.get_log_file()
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    if log_file is not None:
        logger.info(f"Logging initialized: {log_file}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="icp-lookup",
        description="Look up ICP registration records on icp.chinaz.com",
    )
    parser.add_argument("-debug", "--debug", action="store_true", help="Enable debug tracing")
    parser.add_argument("-t", dest="target", metavar="<target.xyz>", help="Target domain")
    parser.add_argument("-l", dest="list", metavar="<lists.txt>", help="File with one domain per line")
    parser.add_argument("-json", "--json", dest="json", action="store_true", help="Print results as JSON")
    parser.add_argument("-r", dest="retries", type=int, default=None, help="Attempts per domain (default: 3)")
    parser.add_argument("--config", default=None, help="Path to config YAML (default: config/settings.yaml)")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    return parser


def build_overrides(args: argparse.Namespace) -> dict:
    """Turn CLI flags into config overrides; unset flags keep file values"""
    overrides: dict = {}
    if args.retries is not None:
        overrides.setdefault("lookup", {})["retries"] = args.retries
    if args.json:
        overrides.setdefault("output", {})["json"] = True
    if args.debug:
        overrides.setdefault("logging", {})["debug"] = True
    if args.headed:
        overrides.setdefault("browser", {})["headless"] = False
    return overrides


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None,
         stdout: Optional[TextIO] = None) -> int:
    """Main execution function"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load configuration
    try:
        config = load_config(args.config, build_overrides(args))
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    setup_logging(config)
    logger = logging.getLogger(__name__)
    logger.debug("Starting with %r", config)

    try:
        domains = collect_domains(args.target, args.list, stdin if stdin is not None else sys.stdin)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read domain list: {e}")
        return 1

    if not domains:
        parser.print_usage(stdout)
        return 1

    logger.info(f"Looking up {len(domains)} domains")

    writer = ResultWriter(json_output=config.is_json_output(), stream=stdout)
    collector = IcpCollector(config, writer=writer)
    collector.collect_all(domains)
    return 0


if __name__ == "__main__":
    sys.exit(main())
