"""
Tests for `VerificationCodeStore`.

This module verifies the consume-once contract of the store:
    - `put` stores only a hash and supersedes the previous code.
    - `try_consume` reports SUCCESS exactly once and the precise reason
      for every failure (MISMATCH, EXPIRED, NOT_FOUND, ALREADY_CONSUMED).
    - A claim based on a stale snapshot never succeeds.
    - Concurrent consumers of the same code produce exactly one success.
    - Staged payloads survive until `mark_applied`.
    - Database errors surface as `StoreUnavailable`.
"""

import threading
from datetime import timedelta

import pytest
from django.db import DatabaseError, connections
from django.utils import timezone

from verification.constants import CodePurpose, CodeStatus, ConsumeStatus
from verification.exceptions import StoreUnavailable
from verification.models import VerificationCode
from verification.store import VerificationCodeStore

OTP = CodePurpose.OTP_LOGIN
PWD = CodePurpose.PASSWORD_CHANGE


@pytest.fixture
def store():
    return VerificationCodeStore()


def in_ten_minutes():
    return timezone.now() + timedelta(minutes=10)


def expire_now(subject, purpose):
    VerificationCode.objects.filter(subject=subject, purpose=purpose).update(
        expires_at=timezone.now() - timedelta(seconds=1)
    )


@pytest.mark.django_db
class TestPut:
    def test_put_stores_hash_only(self, store):
        """
        Test that the stored row holds a hash, never the code itself.
        """

        store.put("a@x.com", OTP, "123456", in_ten_minutes())

        row = VerificationCode.objects.get(subject="a@x.com", purpose=OTP)
        assert row.status == CodeStatus.PENDING
        assert row.code_hash != "123456"
        assert "123456" not in row.code_hash

    def test_put_supersedes_previous_code(self, store):
        """
        Test that a second `put` replaces the first code: the pair keeps a
        single row, the old code no longer matches and the new one does.
        """

        store.put("a@x.com", OTP, "111111", in_ten_minutes())
        store.put("a@x.com", OTP, "222222", in_ten_minutes())

        assert VerificationCode.objects.filter(subject="a@x.com").count() == 1
        assert store.try_consume("a@x.com", OTP, "111111").status is ConsumeStatus.MISMATCH
        assert store.try_consume("a@x.com", OTP, "222222").succeeded

    def test_put_resets_a_consumed_row(self, store):
        store.put("a@x.com", OTP, "111111", in_ten_minutes())
        assert store.try_consume("a@x.com", OTP, "111111").succeeded

        store.put("a@x.com", OTP, "333333", in_ten_minutes())
        assert store.try_consume("a@x.com", OTP, "333333").succeeded

    def test_purposes_are_independent(self, store):
        store.put("1", OTP, "111111", in_ten_minutes())
        store.put("1", PWD, "222222", in_ten_minutes(), payload="hash")

        assert store.try_consume("1", OTP, "222222").status is ConsumeStatus.MISMATCH
        assert store.try_consume("1", PWD, "222222").succeeded
        assert store.try_consume("1", OTP, "111111").succeeded

    def test_payload_rejected_for_otp(self, store):
        with pytest.raises(ValueError):
            store.put("a@x.com", OTP, "123456", in_ten_minutes(), payload="x")


@pytest.mark.django_db
class TestTryConsume:
    def test_success_then_already_consumed(self, store):
        """
        Test that a code succeeds once and every later attempt is reported
        as ALREADY_CONSUMED.
        """

        store.put("1", PWD, "123456", in_ten_minutes(), payload="encoded")

        result = store.try_consume("1", PWD, "123456")
        assert result.succeeded
        assert result.payload == "encoded"

        again = store.try_consume("1", PWD, "123456")
        assert again.status is ConsumeStatus.ALREADY_CONSUMED
        assert again.payload is None

    def test_otp_success_has_no_payload(self, store):
        store.put("a@x.com", OTP, "123456", in_ten_minutes())
        assert store.try_consume("a@x.com", OTP, "123456").payload is None

    def test_mismatch_keeps_code_pending(self, store):
        """
        Test that a wrong code does not consume or invalidate the right one.
        """

        store.put("a@x.com", OTP, "123456", in_ten_minutes())

        assert store.try_consume("a@x.com", OTP, "000000").status is ConsumeStatus.MISMATCH
        assert store.try_consume("a@x.com", OTP, "123456").succeeded

    def test_not_found(self, store):
        result = store.try_consume("nobody@x.com", OTP, "123456")
        assert result.status is ConsumeStatus.NOT_FOUND

    def test_expired_code(self, store):
        """
        Test that an expired code is reported as EXPIRED, even with the
        right digits, and that its staged payload is dropped.
        """

        store.put("1", PWD, "123456", in_ten_minutes(), payload="encoded")
        expire_now("1", PWD)

        assert store.try_consume("1", PWD, "123456").status is ConsumeStatus.EXPIRED

        row = VerificationCode.objects.get(subject="1", purpose=PWD)
        assert row.status == CodeStatus.EXPIRED
        assert row.payload == ""
        assert store.try_consume("1", PWD, "123456").status is ConsumeStatus.EXPIRED

    def test_expiry_is_exclusive(self, store, mocker):
        """
        Test that a code whose expiry equals the current time is expired.
        """

        expires_at = in_ten_minutes()
        store.put("a@x.com", OTP, "123456", expires_at)
        mocker.patch("verification.store.timezone.now", return_value=expires_at)

        assert store.try_consume("a@x.com", OTP, "123456").status is ConsumeStatus.EXPIRED

    def test_stale_snapshot_cannot_be_claimed(self, store):
        """
        Test that a claim built on a snapshot taken before a supersession
        updates nothing, and that the lost claim is explained as MISMATCH.
        """

        store.put("a@x.com", OTP, "111111", in_ten_minutes())
        snapshot = VerificationCode.objects.get(subject="a@x.com", purpose=OTP)
        store.put("a@x.com", OTP, "222222", in_ten_minutes())

        assert store._claim(snapshot, timezone.now()) is False
        lost = store._classify_lost_claim("a@x.com", OTP, "111111", timezone.now())
        assert lost.status is ConsumeStatus.MISMATCH
        assert store.try_consume("a@x.com", OTP, "222222").succeeded

    def test_lost_claim_after_concurrent_consume(self, store):
        store.put("a@x.com", OTP, "123456", in_ten_minutes())
        snapshot = VerificationCode.objects.get(subject="a@x.com", purpose=OTP)
        assert store.try_consume("a@x.com", OTP, "123456").succeeded

        assert store._claim(snapshot, timezone.now()) is False
        lost = store._classify_lost_claim("a@x.com", OTP, "123456", timezone.now())
        assert lost.status is ConsumeStatus.ALREADY_CONSUMED


@pytest.mark.django_db(transaction=True)
def test_concurrent_consume_succeeds_once():
    """
    Test that several threads racing to consume the same code produce
    exactly one SUCCESS; every other thread sees ALREADY_CONSUMED.
    """

    store = VerificationCodeStore()
    store.put("race@x.com", OTP, "123456", in_ten_minutes())

    workers = 6
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def consume():
        try:
            barrier.wait()
            result = store.try_consume("race@x.com", OTP, "123456")
            with lock:
                results.append(result.status)
        finally:
            connections.close_all()

    threads = [threading.Thread(target=consume) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == workers
    assert results.count(ConsumeStatus.SUCCESS) == 1
    assert results.count(ConsumeStatus.ALREADY_CONSUMED) == workers - 1


@pytest.mark.django_db
class TestPeekExpiry:
    def test_pending_code(self, store):
        expires_at = in_ten_minutes()
        store.put("a@x.com", OTP, "123456", expires_at)
        assert store.peek_expiry("a@x.com", OTP) == expires_at

    def test_no_live_code(self, store):
        """
        Test that unknown, consumed and expired codes have no expiry to report.
        """

        assert store.peek_expiry("a@x.com", OTP) is None

        store.put("a@x.com", OTP, "123456", in_ten_minutes())
        store.try_consume("a@x.com", OTP, "123456")
        assert store.peek_expiry("a@x.com", OTP) is None

        store.put("b@x.com", OTP, "123456", in_ten_minutes())
        expire_now("b@x.com", OTP)
        assert store.peek_expiry("b@x.com", OTP) is None

    def test_peek_does_not_consume(self, store):
        store.put("a@x.com", OTP, "123456", in_ten_minutes())
        store.peek_expiry("a@x.com", OTP)
        assert store.try_consume("a@x.com", OTP, "123456").succeeded


@pytest.mark.django_db
class TestUnappliedPayload:
    def test_payload_kept_until_marked_applied(self, store):
        """
        Test that a consumed payload stays available for a retried apply and
        is cleared by `mark_applied`, which succeeds only once.
        """

        store.put("1", PWD, "123456", in_ten_minutes(), payload="encoded")
        assert store.get_unapplied_payload("1", PWD) is None

        result = store.try_consume("1", PWD, "123456")
        pending = store.get_unapplied_payload("1", PWD)
        assert pending.payload == "encoded"
        assert pending.version == result.version

        assert store.mark_applied("1", PWD, result.version) is True
        assert store.get_unapplied_payload("1", PWD) is None
        assert store.mark_applied("1", PWD, result.version) is False

        row = VerificationCode.objects.get(subject="1", purpose=PWD)
        assert row.payload == ""
        assert row.applied_at is not None

    def test_mark_applied_after_supersession(self, store):
        store.put("1", PWD, "123456", in_ten_minutes(), payload="old")
        result = store.try_consume("1", PWD, "123456")
        store.put("1", PWD, "654321", in_ten_minutes(), payload="new")

        assert store.mark_applied("1", PWD, result.version) is False
        assert store.get_unapplied_payload("1", PWD) is None


@pytest.mark.django_db
class TestStorageErrors:
    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.put("a@x.com", OTP, "123456", in_ten_minutes()),
            lambda s: s.try_consume("a@x.com", OTP, "123456"),
            lambda s: s.peek_expiry("a@x.com", OTP),
            lambda s: s.get_unapplied_payload("1", PWD),
            lambda s: s.mark_applied("1", PWD, 1),
        ],
    )
    def test_database_errors_raise_store_unavailable(self, store, mocker, call):
        mocker.patch.object(
            VerificationCode.objects, "filter", side_effect=DatabaseError("locked")
        )
        with pytest.raises(StoreUnavailable):
            call(store)
