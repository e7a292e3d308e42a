import logging
from unittest.mock import MagicMock

import pytest

from apps.presign.exception import FatalStartupError, ProviderNotConfiguredError
from apps.presign.registry import SIGNER_FACTORIES, SignerRegistry, build_registry
from apps.presign.signers.base import Signer
from apps.presign.signers.s3 import S3Signer
from settings.config import Settings


def _settings(primary: str, supported: str) -> Settings:
    return Settings(_env_file=None, PRIMARY_PROVIDER=primary, SUPPORTED_PROVIDERS=supported)


def _failing_factory(settings):
    raise RuntimeError("no credentials")


def test_aws_is_the_only_builtin_factory():
    assert set(SIGNER_FACTORIES) == {"aws"}


def test_builds_signer_for_each_supported_provider():
    aws, gcp = MagicMock(spec=Signer), MagicMock(spec=Signer)
    factories = {"aws": lambda s: aws, "gcp": lambda s: gcp}

    registry = build_registry(_settings("aws", "aws,gcp"), factories)

    assert registry.providers == ["aws", "gcp"]
    assert registry.lookup("aws") is aws
    assert registry.lookup("gcp") is gcp


def test_primary_failure_is_fatal():
    factories = {"aws": _failing_factory}

    with pytest.raises(FatalStartupError, match="could not create aws presigner"):
        build_registry(_settings("aws", "aws"), factories)


def test_primary_without_implementation_is_fatal():
    with pytest.raises(FatalStartupError, match="azure"):
        build_registry(_settings("azure", "azure"), {"aws": lambda s: MagicMock(spec=Signer)})


def test_secondary_failure_is_logged_and_skipped(caplog):
    aws = MagicMock(spec=Signer)
    factories = {"aws": lambda s: aws, "gcp": _failing_factory}

    with caplog.at_level(logging.WARNING, logger="apps.presign.registry"):
        registry = build_registry(_settings("aws", "aws,gcp,azure"), factories)

    assert registry.providers == ["aws"]
    assert "could not create gcp presigner" in caplog.text
    assert "could not create azure presigner" in caplog.text


def test_primary_is_built_even_when_not_listed():
    gcp = MagicMock(spec=Signer)
    registry = build_registry(_settings("gcp", "aws"), {"gcp": lambda s: gcp, "aws": _failing_factory})

    assert registry.providers == ["gcp"]


def test_default_factory_builds_s3_signer():
    registry = build_registry(
        Settings(
            _env_file=None,
            PRIMARY_PROVIDER="aws",
            SUPPORTED_PROVIDERS="aws",
            AWS_REGION="us-east-1",
            AWS_ACCESS_KEY_ID="AKIDEXAMPLE",
            AWS_SECRET_ACCESS_KEY="secret",
        )
    )

    assert isinstance(registry.lookup("aws"), S3Signer)


def test_lookup_miss_raises_provider_not_configured():
    registry = SignerRegistry({"aws": MagicMock(spec=Signer)})

    with pytest.raises(ProviderNotConfiguredError, match="provider not configured: azure"):
        registry.lookup("azure")
    assert registry.get("azure") is None


def test_registry_is_read_only():
    registry = SignerRegistry({"aws": MagicMock(spec=Signer)})

    with pytest.raises(TypeError):
        registry._signers["gcp"] = MagicMock(spec=Signer)
    assert len(registry) == 1
    assert list(registry) == ["aws"]
