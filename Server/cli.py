"""
HubSpoke Server - CLI Mode Module

Command-line interface for headless/automated maintenance of the site
hierarchy: CSV import and export, listing sites and changesets, and
committing or reverting changesets. Works directly on the database file
and logs to a timestamped file.

Usage:
    python cli.py [--db PATH] import sites.csv
    python cli.py export --output hierarchy.csv
    python cli.py list --type SPOKE
    python cli.py changesets --status PENDING
    python cli.py commit <changeset_id>
    python cli.py revert <changeset_id>
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from exceptions import ErrorKind
from models.infrastructure import OperationResult
from csv_transform import ParseCsvText, ExportSitesToRows, RowsToCsvText, ExportFileName
import database


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_NOT_FOUND = 2
EXIT_DUPLICATE_URL = 3
EXIT_SELF_ASSOCIATION = 4
EXIT_CYCLE_DETECTED = 5
EXIT_STALE_CHANGESET = 6
EXIT_VALIDATION_ERROR = 7
EXIT_INVALID_STATE = 8
EXIT_REGISTRY_BUSY = 9
EXIT_STORAGE_FAILURE = 10

EXIT_CODES = {
    ErrorKind.NOT_FOUND: EXIT_NOT_FOUND,
    ErrorKind.DUPLICATE_URL: EXIT_DUPLICATE_URL,
    ErrorKind.SELF_ASSOCIATION: EXIT_SELF_ASSOCIATION,
    ErrorKind.CYCLE_DETECTED: EXIT_CYCLE_DETECTED,
    ErrorKind.STALE_CHANGESET: EXIT_STALE_CHANGESET,
    ErrorKind.VALIDATION_ERROR: EXIT_VALIDATION_ERROR,
    ErrorKind.INVALID_STATE: EXIT_INVALID_STATE,
    ErrorKind.REGISTRY_BUSY: EXIT_REGISTRY_BUSY,
    ErrorKind.STORAGE_FAILURE: EXIT_STORAGE_FAILURE,
}

DEFAULT_DB_PATH = "database/hubspoke.db"

logger = logging.getLogger(__name__)


def setup_cli_logging(log_level: str = "INFO") -> Path:
    """
    Setup logging for CLI mode with timestamped log file.

    Creates log file with format: hubspoke-cli-YYYY-MM-DD-HH-MM-SS.log
    in a "logs" subdirectory of the current directory.

    Returns:
        Path to the created log file
    """
    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_dir = Path.cwd() / "logs"
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / f"hubspoke-cli-{timestamp}.log"

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)  # Also output to console
        ]
    )

    logger.info(f"HubSpoke CLI Mode - Log file: {log_file}")
    return log_file


def exit_code_for(result: OperationResult) -> int:
    """
    Log the outcome of an engine operation and map it to an exit code
    """
    if result.success:
        return EXIT_SUCCESS

    if result.action_index is not None:
        logger.error(f"{result.error_kind.value} at action {result.action_index}: {result.message}")
    else:
        logger.error(f"{result.error_kind.value}: {result.message}")

    for error in result.errors:
        if error != result.message:
            logger.error(f"  {error}")

    return EXIT_CODES.get(result.error_kind, EXIT_FAILURE)


# ==================== Commands ====================

def command_import(args) -> int:
    csv_path = Path(args.file)
    if not csv_path.is_file():
        logger.error(f"CSV file not found: {csv_path}")
        return EXIT_NOT_FOUND

    rows = ParseCsvText(csv_path.read_text(encoding="utf-8-sig"))
    logger.info(f"Read {len(rows)} rows from {csv_path}")

    result = database.changeset_engine.ImportCsv(rows, args.user, f"CSV Import: {csv_path.name}")
    if result.success:
        logger.info(
            f"Imported {len(result.value['site_changes'])} sites "
            f"in changeset {result.value['changeset_id']}"
        )
    return exit_code_for(result)


def command_export(args) -> int:
    output = Path(args.output or ExportFileName())
    rows = ExportSitesToRows(database.site_registry)
    output.write_text(RowsToCsvText(rows), encoding="utf-8")
    logger.info(f"Exported {len(rows)} rows to {output}")
    return EXIT_SUCCESS


def command_list(args) -> int:
    try:
        sites = database.site_registry.List(site_type=args.type, division=args.division, search=args.search)
    except ValueError:
        logger.error(f"Invalid site type '{args.type}'. Must be one of: HUB, SPOKE, SUBHUB, all")
        return EXIT_VALIDATION_ERROR

    for site in sites:
        parent = database.site_registry.Get(site.parent_hub_id)
        parent_name = parent.name if parent else "-"
        print(f"{site.site_id}  {site.site_type.value:<6}  {site.name}  {site.url}  parent: {parent_name}")

    logger.info(f"{len(sites)} site(s)")
    return EXIT_SUCCESS


def command_changesets(args) -> int:
    result = database.changeset_engine.ListChangesets(status=args.status, user_id=args.user_filter)
    if result.success:
        for changeset in result.value:
            changes = changeset["site_changes"] or changeset["proposed_actions"]
            print(
                f"{changeset['changeset_id']}  {changeset['status']:<9}  {changeset['created_at_utc']}  "
                f"{changeset['user_id']}  {changeset['title']} ({len(changes)} changes)"
            )
        logger.info(f"{len(result.value)} changeset(s)")
    return exit_code_for(result)


def command_commit(args) -> int:
    result = database.changeset_engine.Commit(args.changeset_id)
    if result.success:
        logger.info(f"Changeset {args.changeset_id} committed")
    return exit_code_for(result)


def command_revert(args) -> int:
    result = database.changeset_engine.RevertChangeset(args.changeset_id, args.user)
    if result.success:
        if result.value["changeset_id"] == args.changeset_id:
            logger.info(f"Pending changeset {args.changeset_id} discarded")
        else:
            logger.info(f"Changeset {args.changeset_id} reverted by changeset {result.value['changeset_id']}")
    return exit_code_for(result)


COMMANDS = {
    "import": command_import,
    "export": command_export,
    "list": command_list,
    "changesets": command_changesets,
    "commit": command_commit,
    "revert": command_revert,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='HubSpoke - SharePoint hub/spoke hierarchy maintenance'
    )
    parser.add_argument('--db', default=DEFAULT_DB_PATH,
                        help=f'Path to the SQLite database (default: {DEFAULT_DB_PATH})')
    parser.add_argument('--user', default=None,
                        help='User recorded on new changesets (default: default_user_id setting)')
    parser.add_argument('--log-level', default='INFO', help='Log level (default: INFO)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    import_parser = subparsers.add_parser('import', help='Import sites from a CSV file')
    import_parser.add_argument('file', help='CSV file to import')

    export_parser = subparsers.add_parser('export', help='Export sites to a CSV file')
    export_parser.add_argument('--output', help='Output file (default: IA_CARD_SORT_<timestamp>.csv)')

    list_parser = subparsers.add_parser('list', help='List sites')
    list_parser.add_argument('--type', help='HUB, SPOKE, SUBHUB or all')
    list_parser.add_argument('--division', help='Filter by division')
    list_parser.add_argument('--search', help='Match name, url or division')

    changesets_parser = subparsers.add_parser('changesets', help='List changesets')
    changesets_parser.add_argument('--status', help='PENDING, COMMITTED, REVERTED or all')
    changesets_parser.add_argument('--user-filter', help='Only changesets of this user')

    commit_parser = subparsers.add_parser('commit', help='Commit a pending changeset')
    commit_parser.add_argument('changeset_id')

    revert_parser = subparsers.add_parser('revert', help='Revert a changeset')
    revert_parser.add_argument('changeset_id')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, open the database and run one command

    Returns:
        Exit code (0 for success, one distinct non-zero code per error kind)
    """
    args = build_parser().parse_args(argv)
    setup_cli_logging(args.log_level)

    try:
        database.Initialize(args.db)
        logger.info(f"Database: {args.db} ({len(database.site_registry)} sites)")
        return COMMANDS[args.command](args)

    except KeyboardInterrupt:
        logger.warning("Operation cancelled by user (Ctrl+C)")
        return EXIT_FAILURE

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
