from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Optional

from apps.presign.schemas import EncryptionSpec

DEFAULT_TTL = timedelta(minutes=15)


@dataclass(frozen=True)
class PutOptions:
    """
    Normalized signing parameters for one presigned PUT.
    Any field left out keeps its default: no content type (provider default),
    empty metadata, a 15 minute TTL and no server-side encryption.
    """

    content_type: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)
    ttl: timedelta = DEFAULT_TTL
    encryption: Optional[EncryptionSpec] = None

    def __post_init__(self):
        if self.metadata is None:
            object.__setattr__(self, "metadata", {})


def ttl_from_millis(expires_ms: int) -> timedelta:
    return timedelta(milliseconds=expires_ms)
