"""
MongoDB Backend
===============

Equality-filter finds on a pymongo ``Database``.
"""

from typing import Any
from urllib.parse import quote_plus

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConfigurationError, PyMongoError

from text2sql_engine.backends.base import Columns, DocumentBackend, Rows
from text2sql_engine.errors import ExecutionError


def inject_credentials(url: str, username: str = "", password: str = "") -> str:
    """
    Put URL-encoded credentials into a Mongo connection string.

    URLs that already carry credentials, and calls without a username, are
    returned unchanged.
    """
    if not username or "@" in url:
        return url
    user = quote_plus(username)
    secret = quote_plus(password or "")
    for scheme in ("mongodb+srv://", "mongodb://"):
        if url.startswith(scheme):
            return f"{scheme}{user}:{secret}@{url[len(scheme):]}"
    return url


class MongoBackend(DocumentBackend):
    """Runs translated queries against one Mongo database."""

    def __init__(self, database: Database, client: MongoClient | None = None) -> None:
        self.database = database
        self._client = client

    @classmethod
    def from_url(cls, url: str, username: str = "", password: str = "") -> "MongoBackend":
        """
        Connect using a URL that names the database, e.g.
        ``mongodb://host:27017/finance?authSource=admin``.

        Raises:
            ValueError: the URL is blank or has no database name
        """
        if not url or not url.strip():
            raise ValueError("MongoDB url is not configured")
        client = MongoClient(inject_credentials(url, username, password))
        try:
            database = client.get_default_database()
        except ConfigurationError as e:
            client.close()
            raise ValueError(
                "MongoDB url must include a database name, "
                "e.g. mongodb://host:27017/db?authSource=admin"
            ) from e
        return cls(database, client)

    def find(
        self,
        collection: str,
        filter: dict[str, Any],
        columns: list[str],
        limit: int,
    ) -> tuple[Columns, Rows]:
        projection: dict[str, int] = {"_id": 0}
        for column in columns:
            if column != "_id":
                projection[column] = 1

        try:
            cursor = self.database[collection].find(filter, projection)
            if limit > 0:
                cursor = cursor.limit(limit)
            documents = [
                {k: v for k, v in doc.items() if k != "_id"} for doc in cursor
            ]
        except PyMongoError as e:
            raise ExecutionError(str(e)) from e

        if columns:
            names = [c for c in columns if c != "_id"]
        else:
            names = list(dict.fromkeys(key for doc in documents for key in doc))
        rows = [tuple(doc.get(name) for name in names) for doc in documents]
        return names, rows

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
