"""Abstract interface for provider signers

Each storage provider (S3, Azure Blob, GCS, ...) implements this interface.
Signers only produce presigned URLs; the upload itself happens between the
client and the provider.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Dict, Iterable, Mapping, Optional

from apps.presign.options import PutOptions
from apps.presign.schemas import PresignedUrl


class Signer(ABC):
    """Produces presigned URLs for one storage provider"""

    @abstractmethod
    def presign_put(self, bucket: str, key: str, opts: PutOptions) -> PresignedUrl:
        """Presign an object upload

        Args:
            bucket: Destination bucket
            key: Destination object key
            opts: Content type, metadata, TTL and encryption for the upload

        Returns:
            PresignedUrl echoing the target with the URL and the headers
            the uploader must send

        Raises:
            Exception: Whatever the provider SDK raises; signers do not retry

        Example:
            url = signer.presign_put("b1", "k1", PutOptions(content_type="text/plain"))
        """
        pass

    @abstractmethod
    def presign_get(self, bucket: str, key: str, ttl: Optional[timedelta] = None) -> PresignedUrl:
        """Presign an object download

        Args:
            bucket: Source bucket
            key: Object key
            ttl: URL lifetime; 15 minutes when omitted

        Returns:
            PresignedUrl for a GET of the object
        """
        pass


def flatten_headers(signed: Mapping[str, Iterable[str]]) -> Dict[str, str]:
    """
    Collapse a multi-valued header mapping to one value per name.
    The first value wins; names with no values are dropped.
    """
    flat: Dict[str, str] = {}
    for name, values in signed.items():
        first = next(iter(values or []), None)
        if first is not None:
            flat[name] = first
    return flat
