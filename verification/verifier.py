"""
Verification of submitted codes.

`CodeVerifier` is a thin layer over `VerificationCodeStore.try_consume`:
every failure kind collapses into ``valid=False`` for callers, while the
precise reason is kept on the outcome and logged.
"""

from dataclasses import dataclass
from typing import Optional

from config.logging import get_logger

from .constants import ConsumeStatus
from .store import VerificationCodeStore

log = get_logger(__name__)


@dataclass(frozen=True)
class VerifyOutcome:
    """
    Result of a verification attempt.

    Attributes:
        valid (bool): The only thing callers should act on.
        reason (ConsumeStatus): Internal detail, for logs and metrics.
        payload (str, optional): Staged payload of a successful verification.
        version (int, optional): Row version after consumption.
    """

    valid: bool
    reason: ConsumeStatus
    payload: Optional[str] = None
    version: Optional[int] = None


class CodeVerifier:
    def __init__(self, store: VerificationCodeStore, code_length: int = 6):
        self.store = store
        self.code_length = code_length

    def _well_formed(self, code) -> bool:
        return (
            isinstance(code, str)
            and len(code) == self.code_length
            and code.isascii()
            and code.isdigit()
        )

    def verify(self, subject: str, purpose: str, submitted_code: str) -> VerifyOutcome:
        """
        Check `submitted_code` for `(subject, purpose)` and consume it on success.

        Malformed codes are rejected as a mismatch without a store round-trip.
        """

        if not self._well_formed(submitted_code):
            outcome = VerifyOutcome(valid=False, reason=ConsumeStatus.MISMATCH)
        else:
            result = self.store.try_consume(subject, purpose, submitted_code)
            outcome = VerifyOutcome(
                valid=result.succeeded,
                reason=result.status,
                payload=result.payload,
                version=result.version,
            )

        if outcome.valid:
            log.info("verification_succeeded", subject=subject, purpose=purpose)
        else:
            log.warning(
                "verification_failed",
                subject=subject,
                purpose=purpose,
                reason=outcome.reason.value,
            )
        return outcome
