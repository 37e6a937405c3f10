"""
Translation of boto3/botocore exceptions into typed query errors.
"""

from __future__ import annotations

import logging

from botocore.exceptions import BotoCoreError, ClientError

from sdp import ErrorType, QueryError

logger = logging.getLogger(__name__)

_NOT_FOUND_SUFFIXES = ("NotFound", "NotFoundException", "NotFoundFault")

_NOT_FOUND_CODES = frozenset({
    "ResourceNotFoundException",
    "NoSuchEntity",
    "NoSuchDistribution",
    "AWS.SimpleQueueService.NonExistentQueue",
    "QueueDoesNotExist",
    "BackupNotFoundException",
    "TableNotFoundException",
})


def _is_not_found(exc: ClientError) -> bool:
    error = exc.response.get("Error", {})
    code = str(error.get("Code", ""))
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")

    if status == 404:
        return True
    if code in _NOT_FOUND_CODES:
        return True
    return any(code.endswith(suffix) for suffix in _NOT_FOUND_SUFFIXES)


def wrap_aws_error(exc: Exception, scope: str | None = None) -> QueryError:
    """Convert *exc* into a QueryError carrying *scope*.

    - QueryError: returned as-is, with its scope filled in if missing.
    - ClientError: NOTFOUND for 404s and ``*NotFound*`` codes, else OTHER.
    - Anything else (including BotoCoreError): OTHER.
    """
    if isinstance(exc, QueryError):
        if not exc.scope:
            exc.scope = scope
        return exc

    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        message = f"{error.get('Code', 'Unknown')}: {error.get('Message', str(exc))}"
        if _is_not_found(exc):
            return QueryError(ErrorType.NOTFOUND, message, scope=scope)
        return QueryError(ErrorType.OTHER, message, scope=scope)

    if isinstance(exc, BotoCoreError):
        return QueryError(ErrorType.OTHER, f"AWS request failed: {exc}", scope=scope)

    return QueryError(ErrorType.OTHER, str(exc) or type(exc).__name__, scope=scope)


def handle_tags_error(exc: Exception) -> dict[str, str]:
    """Log a failed tag lookup and return the tag map to use instead."""
    logger.warning("Failed to get tags: %s", exc)
    return {"error": f"failed to get tags: {exc}"}
