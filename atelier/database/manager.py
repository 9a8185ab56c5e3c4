"""
Durable store for Atelier.

This module keeps the serialized workspace in a DuckDB key/value table.
The store knows nothing about the workspace shape; it only reads and writes
bytes under a key.
"""

import logging
from datetime import datetime
from typing import Optional

import duckdb

from ..errors import StoreWriteFailure


class DatabaseManager:
    """
    Key/value byte store backed by a DuckDB database file.
    """

    def __init__(self, db_path: str = "atelier.db"):
        """
        Initialize the database manager.

        Args:
            db_path: Path to the DuckDB database file (":memory:" for a throwaway store)
        """
        self.db_path = db_path
        self.connection = None

    def connect(self):
        """Establish connection to the database."""
        self.connection = duckdb.connect(self.db_path)
        logging.info(f"Opened workspace store: {self.db_path}")

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None
            logging.info(f"Closed workspace store: {self.db_path}")

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        self.initialize_database()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

    def initialize_database(self):
        """
        Create the key/value table if it doesn't exist.
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                store_key VARCHAR PRIMARY KEY,
                value BLOB NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def get(self, key: str) -> Optional[bytes]:
        """
        Read the value stored under a key.

        Args:
            key: The store key

        Returns:
            The stored bytes, or None if nothing is stored under the key
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        result = self.connection.execute("""
            SELECT value FROM kv_store WHERE store_key = ?
        """, [key]).fetchone()

        if result:
            return bytes(result[0])
        return None

    def set(self, key: str, value: bytes) -> None:
        """
        Store a value under a key, replacing any previous value.

        Args:
            key: The store key
            value: The bytes to store

        Raises:
            StoreWriteFailure: if the write did not complete
        """
        if not self.connection:
            raise StoreWriteFailure("Database connection not established")

        try:
            self.connection.execute("""
                INSERT OR REPLACE INTO kv_store (store_key, value, updated_at)
                VALUES (?, ?, ?)
            """, [key, value, datetime.now()])
        except duckdb.Error as e:
            raise StoreWriteFailure(f"Failed to write {key!r}: {e}") from e

