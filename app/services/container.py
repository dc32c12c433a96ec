from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.config import AppConfig
from app.services.scheduling_context import SchedulingServices, SessionContext, build_scheduler
from app.utils.persistent_store import LocalKeyValueStore
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    local_storage: LocalKeyValueStore
    audit_logger: AuditLogger
    # Server-side scheduler; owner filtering happens per call so one instance serves every user
    server: SchedulingServices

    @classmethod
    def build(cls, config: AppConfig, *, app: Optional[Any] = None) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Args:
            config: Application configuration
            app: Flask app whose teardown should release DB connections
        """
        logger.info("Building ServiceContainer...")
        database = SQLiteDatabaseHandler(config.database_path)
        database.init_app(app, seed_species=config.seed_species)

        audit_logger = AuditLogger(config.audit_log_path, level=config.log_level)
        local_storage = LocalKeyValueStore(config.local_store_dir)

        # Any non-empty owner works here: the server scheduler only fixes the backend
        server = build_scheduler(
            SessionContext.for_user("server"),
            database=database,
            audit_logger=audit_logger,
        )

        logger.info("ServiceContainer built successfully.")
        return cls(
            config=config,
            database=database,
            local_storage=local_storage,
            audit_logger=audit_logger,
            server=server,
        )

    def scheduling_for(self, session: SessionContext) -> SchedulingServices:
        """Scheduler bound to the backend *session* requires."""
        if not session.is_local:
            return self.server
        return build_scheduler(session, local_storage=self.local_storage, audit_logger=self.audit_logger)

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        self.audit_logger.close()
        self.database.close_db()
        logger.info("ServiceContainer shutdown complete.")
