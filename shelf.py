#!/usr/bin/env python3
"""Bookshelf CLI - book catalog over a remote record store."""
import argparse
import asyncio
import csv
import sys
import json
from tabulate import tabulate
from bookshelf.async_client import AsyncRecordStoreClient
from bookshelf.catalog import CatalogManager
from bookshelf.client import RecordStoreClient
from bookshelf.config import Config
from bookshelf.database import Database
from bookshelf.models import Candidate
from bookshelf.parse import parse_records
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def open_store(backend: str, config: Config):
    """Build the async record store for the chosen backend."""
    if backend == "postgres":
        return Database(config.DATABASE_URL)
    return AsyncRecordStoreClient(
        config.SUPABASE_URL,
        api_key=config.SUPABASE_KEY,
        timeout=config.DEFAULT_TIMEOUT
    )


async def close_store(store):
    await store.aclose()


async def list_books(args, config: Config) -> int:
    """Load the catalog and show the books matching the search text."""
    store = open_store(args.backend, config)
    try:
        catalog = CatalogManager(store, config.BOOKS_TABLE)
        result = await catalog.refresh()
        if not result.success:
            print(f"Error: {result.message}")
            return 1

        books = catalog.filter(args.search)
        if not books:
            print("No books found" if args.search else "No books yet")
            return 0

        display_books(books, args.format)
        return 0
    finally:
        await close_store(store)


async def add_book(args, config: Config) -> int:
    """Submit one book through the duplicate-checked insert."""
    candidate = Candidate.from_form({
        "title": args.title,
        "author": args.author,
        "published_year": args.year,
        "link": args.link,
        "description": args.description,
    })

    store = open_store(args.backend, config)
    try:
        catalog = CatalogManager(store, config.BOOKS_TABLE)
        result = await catalog.add(candidate)
    finally:
        await close_store(store)

    if not result.success:
        print(f"{result.error_kind}: {result.message}")
        return 1

    display_books([result.record], args.format)
    return 0


def display_books(books, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["ID", "Title", "Author", "Year", "Link"]
        rows = [
            [
                book.id,
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.author[:30] + "..." if len(book.author) > 30 else book.author,
                book.published_year,
                book.link
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([book.to_dict() for book in books], indent=2))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.author} ({book.published_year})")


def export_data(args, config: Config) -> int:
    """Export every stored book."""
    if args.backend == "postgres":
        with Database(config.DATABASE_URL) as db:
            rows = db.fetch_rows(config.BOOKS_TABLE, {})
    else:
        with RecordStoreClient(
            config.SUPABASE_URL,
            api_key=config.SUPABASE_KEY,
            timeout=config.DEFAULT_TIMEOUT,
            max_retries=config.DEFAULT_MAX_RETRIES
        ) as client:
            rows = client.select(config.BOOKS_TABLE)

    books = parse_records(rows)

    if args.format == "json":
        data = [book.to_dict() for book in books]

        if args.output:
            with open(args.output, 'w') as f:
                json.dump(data, f, indent=2)
            logger.info(f"✅ Exported {len(books)} books to {args.output}")
        else:
            print(json.dumps(data, indent=2))

    elif args.format == "csv":
        output_file = args.output or "books_export.csv"
        with open(output_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(["ID", "Title", "Author", "Published", "Link", "Description"])

            for book in books:
                writer.writerow([
                    book.id,
                    book.title,
                    book.author,
                    book.published_year,
                    book.link,
                    book.description or ""
                ])

        logger.info(f"✅ Exported {len(books)} books to {output_file}")

    return 0


def init_db(args, config: Config) -> int:
    """Create the books table in PostgreSQL."""
    with Database(config.DATABASE_URL) as db:
        db.init_schema(config.BOOKS_TABLE)
    return 0


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bookshelf - book catalog CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List every book
  %(prog)s list

  # Search by title or author
  %(prog)s list --search dune --format compact

  # Add a book
  %(prog)s add --title Dune --author Herbert --year 1965 --link https://example.com/dune

  # Export data
  %(prog)s export --format csv --output books.csv
        """
    )
    parser.add_argument(
        "--backend",
        choices=["rest", "postgres"],
        default=config.STORE_BACKEND,
        help="Record store backend (default: from STORE_BACKEND)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # List command
    list_parser = subparsers.add_parser("list", help="List books")
    list_parser.add_argument("--search", default="", help="Filter by title or author")
    list_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    # Add command
    add_parser = subparsers.add_parser("add", help="Add a book")
    add_parser.add_argument("--title", help="Book title")
    add_parser.add_argument("--author", help="Author")
    add_parser.add_argument("--year", help="Published year")
    add_parser.add_argument("--link", help="Book link (https://...)")
    add_parser.add_argument("--description", help="Optional description")
    add_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export stored books")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Export format")
    export_parser.add_argument("--output", help="Output file (default: stdout for JSON)")

    # Init command
    subparsers.add_parser("init-db", help="Create the books table (postgres backend)")

    return parser


def main():
    """Main CLI entry point."""
    config = Config()
    parser = build_parser(config)
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "list":
            status = asyncio.run(list_books(args, config))

        elif args.command == "add":
            status = asyncio.run(add_book(args, config))

        elif args.command == "export":
            status = export_data(args, config)

        elif args.command == "init-db":
            status = init_db(args, config)

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)

    sys.exit(status)


if __name__ == "__main__":
    main()
