"""
Idempotency-Key handling for mutating REST calls.

A key is claimed by inserting its row before the write runs; the unique
constraint on (key, user, operation) makes the claim atomic, so two
concurrent requests with one key can never both perform the write.
"""
from __future__ import annotations

import hashlib
import json
import logging
from uuid import UUID

from django.db import IntegrityError, transaction

from shop.domain.errors import ShopError
from shop.infra.models import IdempotencyKey

logger = logging.getLogger(__name__)


class DuplicateRequestError(ShopError):
    """Idempotency key reused with a different request body, or still in flight."""

    code = "DUPLICATE_REQUEST"


def request_hash(payload) -> str:
    """Create hash of request for deduplication."""
    content = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(content.encode()).hexdigest()


def _short(key: str) -> str:
    return key[:8] + "..."


class IdempotencyStore:
    """Stored responses keyed by (key, user, operation)."""

    def reserve(self, key: str, user_id: UUID, operation: str, body_hash: str) -> IdempotencyKey | None:
        """
        Claim ``key`` for this request.

        Returns None when the caller now owns the key and must perform the
        write, or the stored entry when this is a replay of a finished call.
        """
        try:
            with transaction.atomic():
                IdempotencyKey.objects.create(
                    key=key,
                    user_id=user_id,
                    operation=operation,
                    request_hash=body_hash,
                )
            return None
        except IntegrityError:
            existing = IdempotencyKey.objects.get(key=key, user_id=user_id, operation=operation)

        log_extra = {"user_id": str(user_id), "idempotency_key": _short(key), "operation": operation}
        if existing.request_hash != body_hash:
            logger.warning("idempotency_key_conflict", extra=log_extra)
            raise DuplicateRequestError("Idempotency key already used with different request")
        if existing.status_code is None:
            logger.warning("idempotency_key_in_progress", extra=log_extra)
            raise DuplicateRequestError("A request with this idempotency key is still being processed")

        logger.info("idempotent_request_cached", extra=log_extra)
        return existing

    def complete(
        self,
        key: str,
        user_id: UUID,
        operation: str,
        status_code: int,
        payload: dict,
    ) -> None:
        """Store the response of the request that owns ``key``."""
        IdempotencyKey.objects.filter(key=key, user_id=user_id, operation=operation).update(
            status_code=status_code,
            response_payload=payload,
        )

    def release(self, key: str, user_id: UUID, operation: str) -> None:
        """Drop an unfinished claim so the client can retry after a failure."""
        IdempotencyKey.objects.filter(
            key=key,
            user_id=user_id,
            operation=operation,
            status_code__isnull=True,
        ).delete()
        logger.info(
            "idempotency_key_released",
            extra={"user_id": str(user_id), "idempotency_key": _short(key), "operation": operation},
        )
