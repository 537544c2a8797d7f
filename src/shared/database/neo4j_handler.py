"""
Neo4j Connection Handler

Centralised Neo4j driver management.
Reads credentials from environment variables and exposes a synchronous
driver shared by every Neo4j-backed graph store of the process.
"""

import os
import logging
from typing import Any

from dotenv import load_dotenv
from neo4j import READ_ACCESS, Driver, GraphDatabase, Query
from neo4j.exceptions import AuthError, Neo4jError, ServiceUnavailable

from src.shared.config import BaseLineageSettings
from src.shared.exceptions import (
    DatabaseConnectionError,
    GraphStoreError,
    TraversalTimeoutError,
)

load_dotenv()

logger = logging.getLogger("lineage.neo4j_handler")

_TIMEOUT_CODE_MARKER = "TransactionTimedOut"


class Neo4jHandler:
    """
    Manages a single Neo4j driver backed by .env configuration.

    Usage
    -----
    handler = Neo4jHandler()          # reads from .env
    handler.connect()
    rows = handler.run("MATCH (n) RETURN n LIMIT 5")
    handler.close()

    The handler can also be used as a context-manager:

        with Neo4jHandler() as handler:
            handler.run(...)

    The handler only ever opens read sessions; lineage queries never
    write to the store.
    """

    def __init__(
        self,
        uri: str | None = None,
        username: str | None = None,
        password: str | None = None,
        database: str | None = None,
    ):
        self._uri = uri or os.getenv("NEO4J_URI")
        self._username = username or os.getenv("NEO4J_USERNAME")
        self._password = password or os.getenv("NEO4J_PASSWORD")
        self._database = database or os.getenv("NEO4J_DATABASE", "neo4j")
        self._driver: Driver | None = None

        if not self._uri:
            raise ValueError("NEO4J_URI is not set (env or argument)")
        if not self._username:
            raise ValueError("NEO4J_USERNAME is not set (env or argument)")
        if not self._password:
            raise ValueError("NEO4J_PASSWORD is not set (env or argument)")

    @classmethod
    def from_settings(cls, settings: BaseLineageSettings) -> "Neo4jHandler":
        """Build a handler from component settings; empty fields fall back to the environment."""
        return cls(
            uri=settings.neo4j_uri or None,
            username=settings.neo4j_username or None,
            password=settings.neo4j_password or None,
            database=settings.neo4j_database or None,
        )

    # ─── Lifecycle ──────────────────────────────────────────

    def connect(self) -> "Neo4jHandler":
        """Create the driver and verify connectivity.

        Returns:
            Self for method chaining.

        Raises:
            DatabaseConnectionError: If Neo4j cannot be reached or rejects
                the credentials.
        """
        if self._driver is not None:
            return self

        self._driver = GraphDatabase.driver(
            self._uri, auth=(self._username, self._password)
        )
        try:
            self._driver.verify_connectivity()
            logger.info("Connected to Neo4j at %s (db=%s)", self._uri, self._database)
        except (ServiceUnavailable, AuthError) as exc:
            logger.error("Failed to connect to Neo4j at %s", self._uri)
            self._driver.close()
            self._driver = None
            raise DatabaseConnectionError(f"Cannot reach Neo4j at {self._uri}: {exc}") from exc
        return self

    def close(self) -> None:
        """Close the underlying driver."""
        if self._driver:
            self._driver.close()
            self._driver = None
            logger.info("Neo4j connection closed")

    def __enter__(self) -> "Neo4jHandler":
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ─── Properties ─────────────────────────────────────────

    @property
    def driver(self) -> Driver:
        """Return the raw driver.

        Raises:
            RuntimeError: If handler is not connected (call connect() first).
        """
        if self._driver is None:
            raise RuntimeError("Neo4jHandler is not connected, call connect() first")
        return self._driver

    @property
    def database(self) -> str:
        """Return the configured database name."""
        return self._database

    @property
    def uri(self) -> str:
        """Return the configured Neo4j URI."""
        return self._uri

    # ─── Query Helpers ──────────────────────────────────────

    def run(
        self,
        query: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> list[dict]:
        """Execute a read-only Cypher query and return all results as dicts.

        Args:
            query: Cypher query string.
            params: Optional query parameters.
            timeout: Server-side transaction timeout in seconds.

        Returns:
            List of result records as dictionaries.

        Raises:
            TraversalTimeoutError: If the server aborted the transaction
                because the timeout elapsed.
            DatabaseConnectionError: If the server became unreachable.
            GraphStoreError: For any other driver error.
        """
        try:
            with self.driver.session(database=self._database, default_access_mode=READ_ACCESS) as session:
                result = session.run(Query(query, timeout=timeout), params or {})
                return [record.data() for record in result]
        except ServiceUnavailable as exc:
            raise DatabaseConnectionError(f"Lost connection to Neo4j: {exc}") from exc
        except Neo4jError as exc:
            # Timeouts surface as ClientError or TransientError depending on server version
            if _TIMEOUT_CODE_MARKER in (exc.code or ""):
                raise TraversalTimeoutError(f"Neo4j transaction timed out after {timeout}s") from exc
            raise GraphStoreError(f"Cypher execution failed: {exc}") from exc
