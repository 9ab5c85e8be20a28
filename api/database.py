import json
import logging
from contextlib import contextmanager
from datetime import date, datetime
from enum import Enum
from typing import Dict, Generator, Iterable, Optional

from neo4j import GraphDatabase, Session
from config import settings

logger = logging.getLogger(__name__)


class Neo4jConnection:
    """Manages Neo4j database connections with connection pooling."""

    def __init__(self):
        """Initialize Neo4j connection with settings from config."""
        self.uri = settings.neo4j_uri
        self.user = settings.neo4j_user
        self.password = settings.neo4j_password

        if not self.password:
            raise ValueError("NEO4J_PASSWORD is required in settings")

        self.driver = GraphDatabase.driver(
            self.uri,
            auth=(self.user, self.password),
            max_connection_pool_size=50,
            connection_acquisition_timeout=30,
            max_transaction_retry_time=30
        )

    def close(self):
        """Close the driver connection"""
        if self.driver:
            self.driver.close()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session with automatic cleanup"""
        session = self.driver.session()
        try:
            yield session
        finally:
            session.close()

    def verify_connectivity(self) -> bool:
        """Verify database connectivity.

        Returns:
            bool: True if connected, False otherwise
        """
        try:
            with self.get_session() as session:
                result = session.run("RETURN 1 as test")
                return result.single()["test"] == 1
        except Exception as e:
            logger.error(f"Database connectivity check failed: {e}")
            return False


# Singleton instance
db = Neo4jConnection()


def _json_default(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class BaseRepository:
    """Base repository with common Neo4j operations.

    Provides common database operations that all specific repositories inherit.
    Handles query execution, property encoding, and connection management.

    Node properties can only hold primitives and lists of primitives, so every
    repository names the fields it keeps as JSON text in ``json_fields``.
    """

    json_fields: Iterable[str] = ()

    def __init__(self):
        self.db = db

    def execute_query(self, query: str, parameters: dict = None) -> list:
        """Execute a query and return results.

        Args:
            query: Cypher query string
            parameters: Optional query parameters

        Returns:
            list: Query results as list of dictionaries
        """
        with self.db.get_session() as session:
            result = session.run(query, parameters or {})
            return [record.data() for record in result]

    def execute_write(self, query: str, parameters: dict = None) -> dict:
        """Execute a write query and return summary.

        Args:
            query: Cypher query string
            parameters: Optional query parameters

        Returns:
            dict: Summary of changes made to the database
        """
        with self.db.get_session() as session:
            result = session.run(query, parameters or {})
            summary = result.consume()
            return {
                "nodes_created": summary.counters.nodes_created,
                "relationships_created": summary.counters.relationships_created,
                "properties_set": summary.counters.properties_set,
            }

    def to_properties(self, data: Dict) -> Dict:
        """Convert a model dump into Neo4j-safe node properties."""
        params = {}
        for key, value in data.items():
            if key in self.json_fields:
                params[key] = json.dumps(value, default=_json_default) if value is not None else None
            elif isinstance(value, (date, datetime)):
                params[key] = value.isoformat()
            elif isinstance(value, Enum):
                params[key] = value.value
            else:
                params[key] = value
        return params

    def from_properties(self, node: Optional[Dict]) -> Optional[Dict]:
        """Decode JSON-encoded properties of a node returned by a query."""
        if node is None:
            return None
        data = dict(node)
        for key in self.json_fields:
            if isinstance(data.get(key), str):
                data[key] = json.loads(data[key])
        return data
