"""
Backends Module
===============

Relational and document-store execution adapters.
"""

from text2sql_engine.backends.base import Backend, DocumentBackend, SqlBackend
from text2sql_engine.backends.document import MongoBackend, inject_credentials
from text2sql_engine.backends.registry import BackendRegistry
from text2sql_engine.backends.relational import SqlAlchemyBackend

__all__ = [
    "Backend",
    "BackendRegistry",
    "DocumentBackend",
    "MongoBackend",
    "SqlAlchemyBackend",
    "SqlBackend",
    "inject_credentials",
]
