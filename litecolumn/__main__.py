"""
litecolumn - Entry Point

Run one SQL statement against a database and print its rows:

    python -m litecolumn library.sqlite3 "SELECT id, title FROM tracks"
"""

import argparse
import io
import logging
import sys
from pathlib import Path
from typing import TextIO

from litecolumn.config import get_database_config, load_database_config
from litecolumn.core import CoreError
from litecolumn.core.database import Database


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="litecolumn",
        description="Run a SQL statement and print its rows, one tab-separated line per row",
    )

    parser.add_argument("database", help="Path to the SQLite database (or :memory:)")
    parser.add_argument("sql", help="SQL statement to run")

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a database.toml (default: bundled defaults)",
    )

    parser.add_argument(
        "--header",
        action="store_true",
        help="Print the column names first",
    )

    parser.add_argument(
        "--types",
        action="store_true",
        help="Append the storage class of each cell (e.g. 42:INTEGER)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    return parser.parse_args(argv)


def print_rows(db: Database, sql: str, out: TextIO, header: bool = False, types: bool = False) -> int:
    """Run `sql` and write its rows to `out`; returns the number of rows printed."""
    rows = 0
    with db.statement(sql) as stmt:
        while stmt.execute_step():
            if header and rows == 0:
                names = [stmt.get_column_name(i) for i in range(stmt.column_count)]
                out.write("\t".join(names) + "\n")
            for index in range(stmt.column_count):
                if index:
                    out.write("\t")
                column = stmt.get_column(index)
                # Read the tag before the text projection touches the cell.
                storage = column.get_type()
                column.write_to(out)
                if types:
                    out.write(f":{storage.name}")
            out.write("\n")
            rows += 1
    return rows


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)
    config = load_database_config(args.config) if args.config else get_database_config()

    # Undecodable TEXT cells carry surrogate escapes; write them back as the original bytes.
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(errors="surrogateescape")

    try:
        with Database(args.database, config=config) as db:
            count = print_rows(db, args.sql, sys.stdout, header=args.header, types=args.types)
    except CoreError as e:
        logger.error("Query failed: %s", e)
        return 1

    logger.debug("Printed %d rows", count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
