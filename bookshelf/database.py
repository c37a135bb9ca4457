"""PostgreSQL record store."""
import asyncio
import psycopg2
import psycopg2.extras
from psycopg2 import pool, sql
from typing import List, Dict, Any
import logging

from bookshelf.errors import StoreError

logger = logging.getLogger(__name__)

# Columns a caller may filter on or write
BOOK_COLUMNS = ("title", "author", "published_year", "link", "description")


class Database:
    """PostgreSQL database with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        try:
            self.connection_pool = psycopg2.pool.ThreadedConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.Error as e:
            raise StoreError(f"Failed to create connection pool: {e}") from e

        logger.info("Database connection pool created successfully")

    def init_schema(self, collection: str = "books"):
        """Create the books table if it doesn't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(sql.SQL("""
                    CREATE TABLE IF NOT EXISTS {} (
                        id BIGSERIAL PRIMARY KEY,
                        title TEXT NOT NULL,
                        author TEXT NOT NULL,
                        published_year INTEGER NOT NULL,
                        link TEXT NOT NULL,
                        description TEXT,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """).format(sql.Identifier(collection)))

                conn.commit()
                logger.info("Database schema initialized successfully")

        finally:
            self.connection_pool.putconn(conn)

    # Record store contract; blocking work runs off the event loop

    async def select(self, collection: str) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self.fetch_rows, collection, {})

    async def select_where(self, collection: str, match: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self.fetch_rows, collection, match)

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self.insert_row, collection, record)

    def fetch_rows(self, collection: str, match: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Select rows, optionally filtered by exact column equality.

        Args:
            collection: Table name
            match: Column name to required value (empty for a full scan)

        Returns:
            List of row dicts in insertion order
        """
        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(collection))
        values = []
        if match:
            conditions = []
            for column, value in match.items():
                conditions.append(sql.SQL("{} = %s").format(sql.Identifier(_checked(column))))
                values.append(value)
            query += sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)
        query += sql.SQL(" ORDER BY id")

        conn = self.connection_pool.getconn()
        try:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, values)
                rows = [dict(row) for row in cur.fetchall()]
                conn.commit()
                return rows
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to select books: {e}")
            raise StoreError(f"Database query failed: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def insert_row(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a book row and return it with its generated id.

        Args:
            collection: Table name
            record: Column values without id

        Returns:
            The stored row
        """
        columns = [_checked(column) for column in record]
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(collection),
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns)
        )

        conn = self.connection_pool.getconn()
        try:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, [record[c] for c in columns])
                row = dict(cur.fetchone())
                conn.commit()
                return row
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to insert book: {e}")
            raise StoreError(f"Database insert failed: {e}") from e
        finally:
            self.connection_pool.putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    async def aclose(self):
        """Close the pool from async code."""
        self.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def _checked(column: str) -> str:
    if column not in BOOK_COLUMNS:
        raise StoreError(f"Unknown column: {column}")
    return column
