from typing import Optional

from apps.presign.exception import ValidationError
from apps.presign.schemas import EncryptionSpec
from constants.providers import EncryptionType


def _has_customer_key_material(enc: EncryptionSpec) -> bool:
    return bool(enc.customer_key_b64 or enc.customer_key_md5_b64 or enc.customer_key_sha256_b64)


def validate_encryption(enc: Optional[EncryptionSpec]) -> None:
    """
    Enforce server-side encryption rules for one target:
      - provider_managed: no key_ref, no customer-supplied key fields
      - customer_managed: key_ref required, no customer-supplied key fields
      - anything else (including an empty type) is unsupported
    A missing encryption block is always valid; the bucket default applies.
    Raises ValidationError on the first violation.
    """
    if enc is None:
        return

    if enc.type == EncryptionType.PROVIDER_MANAGED.value:
        if enc.key_ref:
            raise ValidationError("key_ref must be empty for provider_managed")
        if _has_customer_key_material(enc):
            raise ValidationError("customer-supplied fields not allowed for provider_managed")
    elif enc.type == EncryptionType.CUSTOMER_MANAGED.value:
        if not enc.key_ref:
            raise ValidationError("key_ref required for customer_managed")
        # Raw key material never passes through the gateway
        if _has_customer_key_material(enc):
            raise ValidationError("customer-supplied fields not allowed for customer_managed")
    else:
        raise ValidationError("unsupported encryption type")
