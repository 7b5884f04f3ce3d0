"""
Shared dependencies for the validation queue API.

This module provides:
- Database manager (engine + session factory)
- Real-time hub shared by the WebSocket endpoint and the fan-out dispatcher
- Deferred task queue for notification emails
- Wired query and adjudication services

Each accessor is cached for the lifetime of the process; tests replace them
through FastAPI's dependency_overrides or call reset_dependencies().
"""

from __future__ import annotations

import logging
from functools import lru_cache

from survey_validation.data import SqlAuditLogWriter, UsersTableIdentityResolver
from survey_validation.db import DatabaseConfig, DatabaseManager
from survey_validation.fanout import (
    DeferredTaskQueue,
    FanOutDispatcher,
    RealtimeHub,
    SmtpConfig,
    SmtpEmailSender,
)
from survey_validation.processing import BulkCoordinator, ValidationTransactionCoordinator
from survey_validation.query import QueueQueryService
from survey_validation.service import ValidationQueueService

from .settings import get_settings

logger = logging.getLogger(__name__)


# ========================================
# Infrastructure
# ========================================


@lru_cache
def get_database() -> DatabaseManager:
    """Database manager configured from settings."""
    settings = get_settings()
    config = DatabaseConfig(url=settings.database_url, echo=settings.database_echo)
    return DatabaseManager.get_instance(config)


@lru_cache
def get_realtime_hub() -> RealtimeHub:
    return RealtimeHub()


@lru_cache
def get_task_queue() -> DeferredTaskQueue:
    settings = get_settings()
    return DeferredTaskQueue(
        max_workers=settings.email_worker_threads,
        default_delay=settings.email_delay_seconds,
    )


@lru_cache
def get_email_sender() -> SmtpEmailSender:
    settings = get_settings()
    return SmtpEmailSender(
        SmtpConfig(
            enabled=settings.email_enabled,
            host=settings.smtp_host or None,
            port=settings.smtp_port,
            username=settings.smtp_username or None,
            password=settings.smtp_password or None,
            use_tls=settings.smtp_use_tls,
            sender=settings.email_from or None,
        )
    )


# ========================================
# Services
# ========================================


@lru_cache
def get_query_service() -> QueueQueryService:
    return QueueQueryService(get_database().session_factory, timezone=get_settings().timezone)


@lru_cache
def get_validation_service() -> ValidationQueueService:
    """Coordinator, bulk coordinator and dispatcher wired over shared infrastructure."""
    settings = get_settings()
    session_factory = get_database().session_factory
    audit_writer = SqlAuditLogWriter(session_factory)

    coordinator = ValidationTransactionCoordinator(
        session_factory,
        identity_resolver=UsersTableIdentityResolver(),
    )
    dispatcher = FanOutDispatcher(
        broadcaster=get_realtime_hub(),
        audit_writer=audit_writer,
        email_sender=get_email_sender(),
        scheduler=get_task_queue(),
        email_delay=settings.email_delay_seconds,
        frontend_url=settings.frontend_url,
    )
    logger.debug("Validation queue service wired")
    return ValidationQueueService(
        coordinator,
        dispatcher,
        get_query_service(),
        audit_writer=audit_writer,
        bulk_coordinator=BulkCoordinator(coordinator),
    )


def reset_dependencies() -> None:
    """Drop every cached dependency and dispose the database engine."""
    for accessor in (
        get_validation_service,
        get_query_service,
        get_email_sender,
        get_task_queue,
        get_realtime_hub,
        get_database,
    ):
        accessor.cache_clear()
    DatabaseManager.reset()


__all__ = [
    "get_database",
    "get_email_sender",
    "get_query_service",
    "get_realtime_hub",
    "get_task_queue",
    "get_validation_service",
    "reset_dependencies",
]
