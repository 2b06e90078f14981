##########################################################################################
#
# Script name: main.py
#
# Description: CLI entrypoint for refreshing and inspecting the aggregated Claude news.
#
##########################################################################################

import argparse
import json
import logging
import os
import sys
from datetime import date

from .aggregator import Aggregator
from .config import CATEGORY_BY_SLUG, load_settings
from .registry import default_registry, load_registry


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(os.path.basename(sys.argv[0]))
LOG_FILE = 'claude_news.log'
formatter = logging.Formatter(
    '%(asctime)-15s [%(funcName)25s:%(lineno)-5s] %(levelname)-8s %(message)s'
)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def configure_logging(verbose: bool = False, quiet: bool = False, log_file: str | None = LOG_FILE) -> None:
    root_log = logging.getLogger()
    root_log.setLevel(logging.DEBUG)

    if log_file and not any(isinstance(handler, logging.FileHandler) for handler in root_log.handlers):
        fh = logging.FileHandler(log_file, mode='w')
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        root_log.addHandler(fh)

    # stderr keeps stdout clean for the JSON payload
    ch = logging.StreamHandler(sys.stderr)
    if verbose:
        ch.setLevel(logging.DEBUG)
    elif quiet:
        ch.setLevel(logging.ERROR)
    else:
        ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    root_log.addHandler(ch)


def run_command(args: argparse.Namespace, aggregator: Aggregator) -> dict:
    if args.clear_cache:
        return {'cleared': aggregator.clear_cache()}
    if args.stats:
        if args.refresh:
            aggregator.aggregate(force_refresh=True)
        return aggregator.get_stats().to_dict()
    if args.top:
        if args.refresh:
            aggregator.aggregate(force_refresh=True)
        story = aggregator.get_top_story()
        return {'top': story.to_dict() if story else None}
    if args.category:
        if args.refresh:
            aggregator.aggregate(force_refresh=True)
        news = aggregator.get_by_category(args.category, limit=args.limit)
    else:
        news = aggregator.aggregate(force_refresh=args.refresh, limit=args.limit)
    report = aggregator.last_report
    return {
        'count': len(news),
        'degraded': report.degraded,
        'failedSources': report.failed,
        'news': [item.to_dict() for item in news],
    }


# ****************************************************************************************
# Handle the arguments
# ****************************************************************************************


def handle_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Fetch and inspect Claude/Anthropic news from multiple sources.')
    parser.add_argument('-r', '--refresh', action='store_true', help='Force refresh from all sources.')
    parser.add_argument('-l', '--limit', type=int, default=10, help='Maximum number of items to print.')
    parser.add_argument('-c', '--category', choices=sorted(CATEGORY_BY_SLUG), help='Only items in this category.')
    parser.add_argument('-t', '--top', action='store_true', help='Print only the top story.')
    parser.add_argument('-s', '--stats', action='store_true', help='Print news statistics.')
    parser.add_argument('--clear-cache', action='store_true', help='Delete the cached news and exit.')
    parser.add_argument('--settings', default=None, help='Optional settings YAML file.')
    parser.add_argument('--sources', default=None, help='Optional source registry YAML file.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Errors only.')
    return parser.parse_args(argv)


# ****************************************************************************************
# Main
# ****************************************************************************************


def main(argv: list[str] | None = None) -> None:
    args = handle_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    log.debug('Checking script requirements...')
    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    log.info('+  %s', os.path.basename(sys.argv[0]))
    log.info('+  Python Version: %s', sys.version.split()[0])
    log.info('+  Today is: %s', date.today())
    log.info('++++++++++++++++++++++++++++++++++++++++++++++')

    settings = load_settings(args.settings)
    registry = load_registry(args.sources) if args.sources else default_registry()
    aggregator = Aggregator(settings=settings, registry=registry)
    result = run_command(args, aggregator)
    print(json.dumps(result, ensure_ascii=False, indent=2))


if __name__ == '__main__':
    main()
