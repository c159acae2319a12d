"""
Backend Registry
================

Maps execution targets to backends, built from settings.
"""

from text2sql_engine.backends.base import Backend
from text2sql_engine.backends.document import MongoBackend
from text2sql_engine.backends.relational import SqlAlchemyBackend
from text2sql_engine.config import Settings
from text2sql_engine.models import Dialect, Domain, ExecutionTarget
from text2sql_engine.observability.logging_config import get_logger

logger = get_logger(__name__)


class BackendRegistry:
    """Holds one backend per configured ``ExecutionTarget``."""

    def __init__(self, backends: dict[ExecutionTarget, Backend] | None = None) -> None:
        self._backends: dict[ExecutionTarget, Backend] = dict(backends or {})

    def register(self, target: ExecutionTarget, backend: Backend) -> None:
        self._backends[target] = backend

    def get(self, target: ExecutionTarget) -> Backend | None:
        return self._backends.get(target)

    def targets(self) -> list[ExecutionTarget]:
        return list(self._backends)

    def close(self) -> None:
        for backend in self._backends.values():
            backend.close()

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackendRegistry":
        """
        Build backends for every target with a configured URL.

        Engines and clients connect lazily, so unreachable stores only fail
        at execution time.
        """
        registry = cls()

        for domain in Domain:
            prefix = domain.value.lower()
            for dialect in (Dialect.MYSQL, Dialect.PGSQL):
                url = getattr(settings, f"{prefix}_{dialect.value.lower()}_url")
                if url:
                    registry.register(
                        ExecutionTarget(domain, dialect),
                        SqlAlchemyBackend.from_url(
                            url,
                            pool_size=settings.pool_size,
                            pool_recycle=settings.pool_recycle_seconds,
                        ),
                    )

            mongo_url = getattr(settings, f"{prefix}_mongo_url")
            if mongo_url:
                registry.register(
                    ExecutionTarget(domain, Dialect.MONGO),
                    MongoBackend.from_url(
                        mongo_url,
                        getattr(settings, f"{prefix}_mongo_username"),
                        getattr(settings, f"{prefix}_mongo_password"),
                    ),
                )

        logger.info("Backends configured", targets=[t.key for t in registry.targets()])
        return registry
