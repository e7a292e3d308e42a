from datetime import timedelta
from typing import Iterable

from apps.presign.exception import ValidationError
from apps.presign.policy import validate_encryption
from apps.presign.schemas import GetObjectRequest, PutObjectRequest, TargetRef


class PutRequestLimits:
    """Limits applied to presigned PUT requests"""

    MIN_TTL = timedelta(minutes=1)
    MAX_TTL = timedelta(minutes=10)

    MAX_METADATA_KEYS = 20
    MAX_METADATA_KEY_LENGTH = 128
    MAX_METADATA_VALUE_BYTES = 1024
    MAX_METADATA_SIZE = 2048

    MAX_BUCKET_LENGTH = 63
    MAX_KEY_LENGTH = 1024

    ALLOWED_CONTENT_TYPES = frozenset(
        {
            "application/octet-stream",
            "application/json",
            "text/plain",
            "image/png",
            "image/jpeg",
        }
    )


def _millis(d: timedelta) -> int:
    return int(d / timedelta(milliseconds=1))


def _validate_ttl_ms(expires_ms: int, min_ttl: timedelta, max_ttl: timedelta) -> None:
    # Compared in milliseconds so huge values cannot overflow timedelta
    if expires_ms < _millis(min_ttl):
        raise ValidationError(f"expires_ms too small (min {_millis(min_ttl)} ms)")
    if expires_ms > _millis(max_ttl):
        raise ValidationError(f"expires_ms too large (max {_millis(max_ttl)} ms)")


def _validate_metadata(metadata: dict) -> None:
    limits = PutRequestLimits
    if len(metadata) > limits.MAX_METADATA_KEYS:
        raise ValidationError(f"too many metadata entries (max {limits.MAX_METADATA_KEYS})")

    total = 0
    for k, v in metadata.items():
        if not k or len(k) > limits.MAX_METADATA_KEY_LENGTH:
            raise ValidationError(
                f"invalid metadata key: {k}. must be 1-{limits.MAX_METADATA_KEY_LENGTH} characters"
            )
        value_size = len(v.encode("utf-8"))
        if value_size > limits.MAX_METADATA_VALUE_BYTES:
            raise ValidationError(
                f"metadata value too long: {k} (max {limits.MAX_METADATA_VALUE_BYTES} bytes)"
            )
        total += len(k.encode("utf-8")) + value_size

    if total > limits.MAX_METADATA_SIZE:
        raise ValidationError(
            f"metadata with {total} bytes exceeds max size of {limits.MAX_METADATA_SIZE}"
        )


def _validate_targets(targets: Iterable[TargetRef]) -> None:
    limits = PutRequestLimits
    for t in targets:
        if not t.bucket or len(t.bucket) > limits.MAX_BUCKET_LENGTH:
            raise ValidationError(
                f"invalid bucket name: {t.bucket}. must be 1-{limits.MAX_BUCKET_LENGTH} characters"
            )
        if not t.key or len(t.key) > limits.MAX_KEY_LENGTH:
            raise ValidationError(f"invalid key: {t.key}. must be 1-{limits.MAX_KEY_LENGTH} characters")
        validate_encryption(t.encryption)


def validate_put_request(in_: PutObjectRequest) -> None:
    """
    Validate a whole put request before any signer runs.
    Checks run in a fixed order and stop at the first violation:
      1. content type allow-list
      2. metadata entry count, key/value sizes, aggregate size
      3. expires_ms within [1 minute, 10 minutes]
      4. each target's bucket, key and encryption
    An empty replication_targets list is accepted.
    """
    ct = in_.content_type
    if not ct or ct not in PutRequestLimits.ALLOWED_CONTENT_TYPES:
        raise ValidationError(f"unsupported content type {ct}")

    _validate_metadata(in_.metadata)
    _validate_ttl_ms(in_.expires_ms, PutRequestLimits.MIN_TTL, PutRequestLimits.MAX_TTL)
    _validate_targets(in_.replication_targets)


def validate_get_request(in_: GetObjectRequest, max_ttl: timedelta) -> None:
    """
    Validate a presigned GET request. At least one target is required and
    expires_ms, when given, must fall within [1 minute, max_ttl].
    """
    if not in_.targets:
        raise ValidationError("at least one target is required")
    if in_.expires_ms is not None:
        _validate_ttl_ms(in_.expires_ms, PutRequestLimits.MIN_TTL, max_ttl)
    _validate_targets(in_.targets)
