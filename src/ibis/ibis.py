"""
IBIS Command Line Entry Point.

The ibis-validate command checks JSON documents against the cached IBIS
schema. The schema is read from the cache directory and downloaded from the
canonical source only when it is not cached yet.

Exit Codes:
    0: All documents conform to the schema
    1: At least one document does not conform
    2: The schema is unavailable, a document could not be read or parsed,
       or the command line was invalid

Example:
    $ ibis-validate page.json other.json
    page.json: valid
    other.json: /children/0 : 'type' is a required property

    $ ibis-validate --fetch-only
    $ cat page.json | ibis-validate -
"""
import argparse
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Optional

from config import get_log_level, load_config
from schema import (
    SCHEMA_CACHE_KEY,
    SchemaStore,
    SchemaStoreError,
    ValidationErrorRecord,
)


logger = logging.getLogger(__name__)

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_ERROR = 2

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(log_level: int, log_file: Optional[str] = None) -> None:
    """Configure the root logger for command line use.

    Logs go to stderr so stdout only carries validation results. When
    log_file is set, a rotating file handler (10MB, 3 backups) is added.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ibis-validate",
        description="Validate JSON documents against the IBIS schema.",
    )
    parser.add_argument("files", nargs="*", help="JSON files to validate ('-' reads stdin)")
    parser.add_argument("--config", help="Path to config.yml")
    parser.add_argument("--cache-dir", help="Directory holding the cached schema")
    parser.add_argument("--schema-url", help="URL to download the schema from")
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Delete the cached schema before validating so it is downloaded again",
    )
    parser.add_argument(
        "--fetch-only",
        action="store_true",
        help="Make sure the schema is cached, then exit",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def format_record(name: str, record: ValidationErrorRecord) -> str:
    return f"{name}: {record.path or '/'} : {record.message}"


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ibis-validate console script.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.cache_dir:
        config["schema"]["cache_dir"] = args.cache_dir
    if args.schema_url:
        config["schema"]["url"] = args.schema_url

    log_level = logging.DEBUG if args.debug else get_log_level(config)
    configure_logging(log_level, config["logging"].get("file"))

    if not args.files and not args.fetch_only:
        parser.print_usage(sys.stderr)
        logger.error("No files given; pass one or more JSON files or --fetch-only")
        return EXIT_ERROR

    store = SchemaStore.from_config(config)

    if args.clear_cache:
        try:
            store.cache_location.remove(SCHEMA_CACHE_KEY)
        except (OSError, ValueError) as e:
            logger.error(f"Could not clear cached schema: {e}")
            return EXIT_ERROR

    if args.fetch_only:
        try:
            store.ensure()
        except SchemaStoreError as e:
            logger.error(str(e))
            return EXIT_ERROR
        logger.info(f"Schema available in {store.cache_location.cache_dir}")
        return EXIT_VALID

    exit_code = EXIT_VALID
    results: Dict[str, Any] = {}
    for name in args.files:
        try:
            if name == "-":
                errors = store.validate_from_source(sys.stdin.buffer)
            else:
                errors = store.validate_from_source(name)
        except SchemaStoreError as e:
            logger.error(f"{name}: {e}")
            results[name] = {"status": "error", "message": str(e)}
            exit_code = EXIT_ERROR
            continue

        if errors:
            logger.info(f"{name}: {len(errors)} validation error(s)")
            results[name] = {"status": "invalid", "errors": [e.to_dict() for e in errors]}
            if exit_code == EXIT_VALID:
                exit_code = EXIT_INVALID
        else:
            results[name] = {"status": "valid", "errors": []}

        if not args.json:
            if errors:
                for record in errors:
                    print(format_record(name, record))
            else:
                print(f"{name}: valid")

    if args.json:
        print(json.dumps(results, indent=2))

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
