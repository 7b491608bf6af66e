"""Command line entry point for the Load Responder application."""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from load_responder.config import Config
from load_responder.database import DatabaseManager
from load_responder.extractor import ReferenceExtractor
from load_responder.formatter import ResponseFormatter
from load_responder.logger import ROOT_LOGGER_NAME, get_logger, install_exception_hook, setup_logger
from load_responder.lookup import QuoteFactoryAPIProvider
from load_responder.models import EmailContent
from load_responder.processor import LoadEmailProcessor

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Load Responder - answer freight load inquiry emails'
    )
    parser.add_argument('--subject', default='', help='Subject of the inbound email')
    body = parser.add_mutually_exclusive_group()
    body.add_argument('--body', help='Body of the inbound email')
    body.add_argument('--body-file', help="File holding the email body ('-' reads stdin)")
    parser.add_argument('--sender', help='Sender address of the inbound email')
    parser.add_argument(
        '--extract-only',
        action='store_true',
        help='Only extract the load reference and print it'
    )
    parser.add_argument(
        '--lookup',
        action='store_true',
        help='Look up load details in QuoteFactory when credentials are configured'
    )
    parser.add_argument('--json', action='store_true', help='Print the full result as JSON')
    parser.add_argument('--html', action='store_true', help='Print the HTML body instead of plain text')
    parser.add_argument(
        '--record-history',
        action='store_true',
        help='Store the result in the processing history database'
    )
    parser.add_argument('--log-level', default=None, help='Logging level (default: LOG_LEVEL or INFO)')
    parser.add_argument(
        '--log-to-file',
        action='store_true',
        help='Also write logs to a timestamped file in the logs directory'
    )
    return parser.parse_args(argv)


def read_body(args: argparse.Namespace) -> str:
    if args.body is not None:
        return args.body
    if args.body_file == '-':
        return sys.stdin.read()
    if args.body_file:
        with open(args.body_file, 'r', encoding='utf-8') as f:
            return f.read()
    return ''


def log_file_path(config: Config, now: Optional[datetime] = None) -> Path:
    current_time = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return config.logs_dir / f"{ROOT_LOGGER_NAME}_{current_time}.log"


def build_processor(config: Config, use_lookup: bool, record_history: bool) -> LoadEmailProcessor:
    """Wire the pipeline from configuration."""
    lookup_provider = None
    if use_lookup:
        if config.quotefactory.is_configured:
            lookup_provider = QuoteFactoryAPIProvider(config.quotefactory)
        else:
            logger.warning("QuoteFactory credentials are not configured, lookup will be skipped")

    db_manager = None
    if record_history:
        db_manager = DatabaseManager(config.db)
        if not db_manager.check_tables_exist():
            db_manager.create_tables()

    return LoadEmailProcessor(
        extractor=ReferenceExtractor(),
        formatter=ResponseFormatter(company=config.company),
        lookup_provider=lookup_provider,
        db_manager=db_manager,
        lookup_timeout_ms=config.quotefactory.timeout_ms
    )


async def run(args: argparse.Namespace, config: Config) -> int:
    email = EmailContent(subject=args.subject, body=read_body(args), sender=args.sender)

    if args.extract_only:
        processor = LoadEmailProcessor()
        extraction = processor.extract(email.subject, email.body)
        print(json.dumps({
            'found': extraction.found,
            'reference': extraction.reference,
            'confidence': extraction.confidence,
            'matched_pattern_id': extraction.matched_pattern_id,
            'reason': extraction.reason,
        }, indent=2))
        return 0

    processor = build_processor(config, args.lookup, args.record_history)
    try:
        result = await processor.process(email)
    finally:
        if processor.lookup_provider is not None:
            await processor.lookup_provider.aclose()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(f"Subject: {result.reply.subject}\n")
        print(result.reply.body_html if args.html else result.reply.body)
    return 0 if result.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    config = Config.load()
    setup_logger(
        log_file=log_file_path(config) if args.log_to_file else None,
        level=(args.log_level or config.log_level).upper()
    )
    install_exception_hook()

    try:
        return asyncio.run(run(args, config))
    except Exception as e:
        logger.error(f"Error running load responder: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
