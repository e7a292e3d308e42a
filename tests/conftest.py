import copy
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest

from apps.presign.registry import SignerRegistry
from apps.presign.schemas import PresignedUrl, TargetRef
from apps.presign.signers.base import Signer
from settings.config import Settings

BASE_PUT_REQUEST: Dict[str, Any] = {
    "content_type": "application/json",
    "expires_ms": 120_000,
    "metadata": {"a": "b"},
    "replication_targets": [{"provider": "aws", "bucket": "b1", "key": "k1"}],
}


def put_payload(**overrides) -> Dict[str, Any]:
    """Copy of a valid put request body with top-level fields overridden."""
    payload = copy.deepcopy(BASE_PUT_REQUEST)
    payload.update(overrides)
    return payload


def signed(provider: str, bucket: str, key: str, url: str) -> PresignedUrl:
    return PresignedUrl(
        target=TargetRef(provider=provider, bucket=bucket, key=key),
        url=url,
        headers={"Host": "signed", "Content-Type": "application/json"},
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, PRIMARY_PROVIDER="aws", SUPPORTED_PROVIDERS="aws", ENABLE_RATE_LIMITER=False)


@pytest.fixture
def aws_signer() -> MagicMock:
    signer = MagicMock(spec=Signer)
    signer.presign_put.side_effect = lambda bucket, key, opts: signed(
        "aws", bucket, key, f"https://signed/{bucket}/{key}"
    )
    signer.presign_get.side_effect = lambda bucket, key, ttl=None: signed(
        "aws", bucket, key, f"https://signed/get/{bucket}/{key}"
    )
    return signer


@pytest.fixture
def registry(aws_signer: MagicMock) -> SignerRegistry:
    return SignerRegistry({"aws": aws_signer})
