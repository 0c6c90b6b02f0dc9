"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- record_id
- workspace_id
- user_id
- job_id
- duration_ms

Usage:
    from chatgenius.utils.logging import configure_logging, log_message_ingested

    configure_logging('chatgenius-api', 'INFO')
    log_message_ingested(logger, record_id='m1', workspace_id='W1', duration_ms=45.2)
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier (chatgenius-api or chatgenius-worker)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        # Console handler (for docker logs)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    record_id: Optional[str] = None,
    workspace_id: Optional[str] = None,
    user_id: Optional[str] = None,
    job_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        record_id: Optional embedding record ID
        workspace_id: Optional workspace ID
        user_id: Optional user ID
        job_id: Optional background job ID
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if record_id:
        extra["record_id"] = record_id
    if workspace_id:
        extra["workspace_id"] = workspace_id
    if user_id:
        extra["user_id"] = user_id
    if job_id:
        extra["job_id"] = job_id
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Ingestion event functions

def log_message_ingested(
    logger: logging.Logger,
    record_id: str,
    workspace_id: Optional[str] = None,
    user_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a record successfully embedded and upserted.

    Args:
        logger: Logger instance
        record_id: Record ID (required)
        workspace_id: Optional workspace ID
        user_id: Optional author ID
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields (e.g. indexes)
    """
    extra = _build_log_extra(
        event="message_ingested",
        record_id=record_id,
        workspace_id=workspace_id,
        user_id=user_id,
        duration_ms=duration_ms,
        **kwargs
    )
    logger.info(f"Record ingested: {record_id}", extra=extra)


def log_ingestion_failed(
    logger: logging.Logger,
    record_id: str,
    error: str,
    workspace_id: Optional[str] = None,
    user_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a per-record ingestion failure. Never includes a traceback:
    failures are expected and isolated per record.
    """
    extra = _build_log_extra(
        event="ingestion_failed",
        record_id=record_id,
        workspace_id=workspace_id,
        user_id=user_id,
        duration_ms=duration_ms,
        error=str(error),
        **kwargs
    )
    logger.error(f"Ingestion failed: {record_id} - {error}", extra=extra)


# Migration event functions

def log_migration_started(
    logger: logging.Logger,
    target: str,
    job_id: Optional[str] = None,
    **kwargs
):
    """Log the start of a bulk migration."""
    extra = _build_log_extra(
        event="migration_started",
        job_id=job_id,
        target=target,
        **kwargs
    )
    logger.info(f"Migration started: {target}", extra=extra)


def log_migration_completed(
    logger: logging.Logger,
    target: str,
    duration_ms: float,
    total_processed: int,
    error_count: int,
    job_id: Optional[str] = None,
    cancelled: bool = False,
    **kwargs
):
    """Log the end of a bulk migration, successful or not."""
    extra = _build_log_extra(
        event="migration_completed",
        job_id=job_id,
        duration_ms=duration_ms,
        target=target,
        total_processed=total_processed,
        error_count=error_count,
        cancelled=cancelled,
        **kwargs
    )
    message = f"Migration completed: {target} ({total_processed} processed, {error_count} errors)"
    if cancelled:
        message = f"Migration cancelled: {target} ({total_processed} processed, {error_count} errors)"
    logger.info(message, extra=extra)


def log_destructive_operation(
    logger: logging.Logger,
    operation: str,
    index: str,
    workspace_id: Optional[str] = None,
    user_id: Optional[str] = None,
    **kwargs
):
    """Log an irreversible index operation (delete all, scoped delete)."""
    extra = _build_log_extra(
        event="destructive_operation",
        workspace_id=workspace_id,
        user_id=user_id,
        operation=operation,
        index=index,
        **kwargs
    )
    logger.warning(f"Destructive operation: {operation} on index {index}", extra=extra)


# Provider event functions

def log_provider_request(
    logger: logging.Logger,
    provider: str,
    operation: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log AI provider request event.

    Args:
        logger: Logger instance
        provider: Provider name (required)
        operation: Operation name (embed, complete) (required)
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="provider_request",
        duration_ms=duration_ms,
        provider=provider,
        operation=operation,
        **kwargs
    )

    logger.debug(f"Provider request: {provider}.{operation}", extra=extra)


def log_provider_failure(
    logger: logging.Logger,
    provider: str,
    operation: str,
    error: str,
    duration_ms: Optional[float] = None,
    include_traceback: bool = False,
    **kwargs
):
    """
    Log AI provider failure event.

    Args:
        logger: Logger instance
        provider: Provider name (required)
        operation: Operation name (required)
        error: Error message (required)
        duration_ms: Optional duration in milliseconds
        include_traceback: Whether to include stack trace (default: False for provider failures)
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="provider_failure",
        duration_ms=duration_ms,
        provider=provider,
        operation=operation,
        error=str(error),
        **kwargs
    )

    message = f"Provider failure: {provider}.{operation} - {error}"

    if include_traceback:
        exc_info = sys.exc_info()
        if exc_info[0] is not None:
            logger.error(message, extra=extra, exc_info=exc_info)
            return
    logger.error(message, extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
