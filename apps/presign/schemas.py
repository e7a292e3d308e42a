from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WireModel(BaseModel):
    """
    Base for request bodies decoded from the wire.
    Types are strict (no "120000" -> 120000 or true -> 1 coercion) and a JSON
    null behaves like an omitted field, falling back to the field default.
    """

    model_config = ConfigDict(strict=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, v, info):
        if v is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return v


class EncryptionSpec(WireModel):
    """
    Server-side encryption requested for one replication target.
    The customer_key_* fields are part of the wire schema but are rejected by policy.
    """

    type: str = ""
    key_ref: str = ""
    customer_key_b64: str = ""
    customer_key_md5_b64: str = ""
    customer_key_sha256_b64: str = ""


class TargetRef(WireModel):
    """
    One destination (provider + bucket + key) for an upload.
    """

    provider: str = ""
    bucket: str = ""
    key: str = ""
    encryption: Optional[EncryptionSpec] = None


class PutObjectRequest(WireModel):
    """
    Request body for POST /v1/put.
    Only wire types are checked here; semantic checks live in apps.presign.validator.
    """

    replication_targets: List[TargetRef] = Field(default_factory=list)
    content_type: str = ""
    metadata: Dict[str, str] = Field(default_factory=dict)
    expires_ms: int = 0


class PresignedUrl(BaseModel):
    """
    A single presigned URL and the headers the uploader must send with it.
    """

    target: TargetRef
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)


class PutObjectResponse(BaseModel):
    targets: List[PresignedUrl] = Field(default_factory=list)


class GetObjectRequest(WireModel):
    """
    Request body for POST /v1/get.
    expires_ms is optional; the configured default TTL applies when omitted.
    """

    targets: List[TargetRef] = Field(default_factory=list)
    expires_ms: Optional[int] = None


class GetObjectResponse(BaseModel):
    targets: List[PresignedUrl] = Field(default_factory=list)
