"""log-timeline — merge client and server log exports into one searchable timeline."""

import logging
import sys
from argparse import ArgumentParser
from itertools import islice

from log_timeline.config import load_config
from log_timeline.errors import LogParseError
from log_timeline.formatter import (
    format_entities_json,
    format_entity_summary,
    format_html,
    get_formatter,
)
from log_timeline.reader import expand_paths, read_upload, select_uploads
from log_timeline.session import TimelineSession

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="log-timeline",
        description="Merge client JSON exports and server text logs into one timeline.",
    )
    parser.add_argument(
        "files",
        nargs="+",
        help="Log file path(s) or glob pattern(s)",
    )
    parser.add_argument(
        "--search",
        help="Fuzzy filter on message, module, or level (case-insensitive)",
    )
    parser.add_argument(
        "--entities",
        action="store_true",
        help="Show the entity index instead of log events",
    )
    parser.add_argument(
        "--lines",
        type=int,
        help="Limit output to N events",
    )
    parser.add_argument(
        "--output",
        choices=["text", "json", "html"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--color",
        action="store_true",
        help="Colorize output by log level (ANSI)",
    )
    parser.add_argument(
        "--config",
        help="Path to a YAML config file",
    )
    return parser


def run_pipeline(args) -> int:
    """Load the files into a session and print the requested view."""
    config = load_config(args.config)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [TIMELINE] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        paths = select_uploads(expand_paths(args.files), config.upload)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    session = TimelineSession(config)
    loaded = 0
    for path in paths:
        try:
            session.ingest(read_upload(path), name=path)
            loaded += 1
        except LogParseError:
            continue

    if not loaded:
        print("Error: no log files could be parsed", file=sys.stderr)
        return 1

    if args.entities:
        if args.output == "json":
            print(format_entities_json(session.entity_index))
        else:
            print(format_entity_summary(session.entity_index))
        return 0

    events = session.set_query(args.search)
    limit = args.lines or None

    if args.output == "html":
        display = config.display
        highlight_current = bool(args.search)
        for i, event in enumerate(islice(events, limit or display.page_size)):
            print(format_html(
                event, i, args.search,
                is_current_match=highlight_current and i == session.current_match_index,
                mark_class=display.mark_class,
            ))
        return 0

    formatter = get_formatter(output_format=args.output, color=args.color)
    for event in islice(events, limit):
        print(formatter(event))
    return 0


def main():
    parser = build_parser()
    args = parser.parse_args()
    try:
        sys.exit(run_pipeline(args))
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)


if __name__ == "__main__":
    main()
