"""
Durable storage for outstanding verification codes.

`VerificationCodeStore` keeps one `VerificationCode` row per
`(subject, purpose)` pair and offers consume-once semantics on top of it.

Every mutation is a single conditional ``UPDATE`` executed by the database,
so correctness does not depend on a lock held by this process:

    - `put` overwrites the row for the pair (supersession) and bumps
      `version`.
    - `try_consume` reads a snapshot, then claims it with
      ``UPDATE ... WHERE pk = ? AND version = ? AND status = 'pending'
      AND expires_at > now``. Only one concurrent caller can match that
      predicate; everybody else sees zero rows updated and is told why.

Database errors surface as `StoreUnavailable`.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from config.logging import get_logger

from .constants import PAYLOAD_PURPOSES, CodeStatus, ConsumeStatus
from .exceptions import StoreUnavailable
from .generators import code_matches, hash_code
from .models import VerificationCode

log = get_logger(__name__)


@dataclass(frozen=True)
class ConsumeResult:
    """
    Precise outcome of `VerificationCodeStore.try_consume`.

    Attributes:
        status (ConsumeStatus): What happened.
        payload (str, optional): Staged payload, only on success.
        version (int, optional): Row version after a successful claim.
    """

    status: ConsumeStatus
    payload: Optional[str] = None
    version: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status is ConsumeStatus.SUCCESS


@dataclass(frozen=True)
class UnappliedPayload:
    version: int
    payload: str


@contextmanager
def _storage_errors(operation: str):
    try:
        yield
    except DatabaseError as exc:
        log.error(
            "verification_store_error",
            operation=operation,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        raise StoreUnavailable() from exc


class VerificationCodeStore:
    """
    Keyed storage for verification codes.

    Methods:
        put(subject, purpose, code, expires_at, payload=None):
            Issue or supersede the code for a pair.
        try_consume(subject, purpose, code):
            Atomically check and consume a code.
        peek_expiry(subject, purpose):
            Expiry of the live pending code, if any.
        get_unapplied_payload(subject, purpose):
            A consumed payload that was never applied.
        mark_applied(subject, purpose, version):
            Record that a consumed payload has been applied.
    """

    model = VerificationCode

    def put(
        self,
        subject: str,
        purpose: str,
        code: str,
        expires_at: datetime,
        payload: Optional[str] = None,
    ) -> None:
        """
        Store `code` for `(subject, purpose)`, superseding any previous code.

        Raises:
            ValueError: If a payload is given for a purpose that has none.
            StoreUnavailable: If the database fails.
        """

        if payload is not None and purpose not in PAYLOAD_PURPOSES:
            raise ValueError(f"Purpose {purpose!r} does not accept a payload.")

        fields = {
            "code_hash": hash_code(subject, purpose, code),
            "status": CodeStatus.PENDING,
            "issued_at": timezone.now(),
            "expires_at": expires_at,
            "payload": payload or "",
            "consumed_at": None,
            "applied_at": None,
        }

        with _storage_errors("put"):
            if self._overwrite(subject, purpose, fields):
                return
            try:
                with transaction.atomic():
                    self.model.objects.create(subject=subject, purpose=purpose, **fields)
            except IntegrityError:
                # Lost the insert race to a concurrent put; overwrite its row.
                self._overwrite(subject, purpose, fields)

    def _overwrite(self, subject, purpose, fields) -> bool:
        updated = self.model.objects.filter(subject=subject, purpose=purpose).update(
            version=F("version") + 1, **fields
        )
        return updated == 1

    def try_consume(self, subject: str, purpose: str, code: str) -> ConsumeResult:
        """
        Consume the pending code for `(subject, purpose)` if `code` matches.

        Returns:
            ConsumeResult: `SUCCESS` with the staged payload, or one of
            `MISMATCH`, `EXPIRED`, `NOT_FOUND`, `ALREADY_CONSUMED`. Only
            `SUCCESS` changes the code's state to consumed; `EXPIRED` marks
            the row expired and drops its payload.
        """

        now = timezone.now()

        with _storage_errors("try_consume"):
            row = self._snapshot(subject, purpose)
            if row is None:
                return ConsumeResult(ConsumeStatus.NOT_FOUND)

            if row.status == CodeStatus.CONSUMED:
                return ConsumeResult(ConsumeStatus.ALREADY_CONSUMED)

            if row.status == CodeStatus.EXPIRED or row.is_expired(now):
                self._expire(row)
                return ConsumeResult(ConsumeStatus.EXPIRED)

            if not code_matches(subject, purpose, code, row.code_hash):
                return ConsumeResult(ConsumeStatus.MISMATCH)

            if self._claim(row, now):
                return ConsumeResult(
                    ConsumeStatus.SUCCESS,
                    payload=row.payload or None,
                    version=row.version + 1,
                )

            return self._classify_lost_claim(subject, purpose, code, now)

    def _snapshot(self, subject, purpose) -> Optional[VerificationCode]:
        return self.model.objects.filter(subject=subject, purpose=purpose).first()

    def _claim(self, row: VerificationCode, now: datetime) -> bool:
        """Compare-and-swap `row` from pending to consumed."""

        claimed = self.model.objects.filter(
            pk=row.pk,
            version=row.version,
            status=CodeStatus.PENDING,
            expires_at__gt=now,
        ).update(status=CodeStatus.CONSUMED, consumed_at=now, version=F("version") + 1)
        return claimed == 1

    def _expire(self, row: VerificationCode) -> None:
        if row.status != CodeStatus.PENDING:
            return
        self.model.objects.filter(
            pk=row.pk, version=row.version, status=CodeStatus.PENDING
        ).update(status=CodeStatus.EXPIRED, payload="", version=F("version") + 1)

    def _classify_lost_claim(self, subject, purpose, code, now) -> ConsumeResult:
        """Explain why a claim that looked valid updated nothing."""

        row = self._snapshot(subject, purpose)
        if row is None:
            return ConsumeResult(ConsumeStatus.NOT_FOUND)
        if not code_matches(subject, purpose, code, row.code_hash):
            # Superseded by a newer code in the meantime.
            return ConsumeResult(ConsumeStatus.MISMATCH)
        if row.status == CodeStatus.CONSUMED:
            return ConsumeResult(ConsumeStatus.ALREADY_CONSUMED)
        return ConsumeResult(ConsumeStatus.EXPIRED)

    def peek_expiry(self, subject: str, purpose: str) -> Optional[datetime]:
        """Return when the live pending code expires, or None if there is none."""

        with _storage_errors("peek_expiry"):
            return (
                self.model.objects.filter(
                    subject=subject,
                    purpose=purpose,
                    status=CodeStatus.PENDING,
                    expires_at__gt=timezone.now(),
                )
                .values_list("expires_at", flat=True)
                .first()
            )

    def get_unapplied_payload(
        self, subject: str, purpose: str
    ) -> Optional[UnappliedPayload]:
        """Return the payload of a consumed code that was never applied."""

        with _storage_errors("get_unapplied_payload"):
            row = (
                self.model.objects.filter(
                    subject=subject,
                    purpose=purpose,
                    status=CodeStatus.CONSUMED,
                    applied_at__isnull=True,
                )
                .exclude(payload="")
                .first()
            )
        if row is None:
            return None
        return UnappliedPayload(version=row.version, payload=row.payload)

    def mark_applied(self, subject: str, purpose: str, version: int) -> bool:
        """
        Record that the consumed payload at `version` has been applied.

        The payload is cleared in the same statement. Returns False if the row
        moved on (applied already, or superseded by a new code).
        """

        with _storage_errors("mark_applied"):
            updated = self.model.objects.filter(
                subject=subject,
                purpose=purpose,
                version=version,
                status=CodeStatus.CONSUMED,
                applied_at__isnull=True,
            ).update(applied_at=timezone.now(), payload="", version=F("version") + 1)
        return updated == 1
