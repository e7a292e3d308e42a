import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Optional

from apps.presign.exception import FatalStartupError, ProviderNotConfiguredError
from apps.presign.signers.base import Signer
from apps.presign.signers.s3 import S3Signer
from constants.providers import Provider
from settings.config import Settings

logger = logging.getLogger(__name__)

SignerFactory = Callable[[Settings], Signer]

# Providers without an entry here are recognised on the wire but never configured
SIGNER_FACTORIES: Dict[str, SignerFactory] = {
    Provider.AWS.value: S3Signer.from_settings,
}


class SignerRegistry(Mapping):
    """
    Read-only provider -> Signer mapping.
    Built once at startup and shared by every request; never mutated afterwards.
    """

    def __init__(self, signers: Optional[Dict[str, Signer]] = None):
        self._signers = MappingProxyType({str(k): v for k, v in (signers or {}).items()})

    def __getitem__(self, provider: str) -> Signer:
        return self._signers[provider]

    def __iter__(self) -> Iterator[str]:
        return iter(self._signers)

    def __len__(self) -> int:
        return len(self._signers)

    @property
    def providers(self) -> List[str]:
        return sorted(self._signers)

    def lookup(self, provider: str) -> Signer:
        """
        Return the signer for provider or raise ProviderNotConfiguredError.
        """
        signer = self._signers.get(provider)
        if signer is None:
            raise ProviderNotConfiguredError(provider)
        return signer


def build_registry(settings: Settings, factories: Optional[Dict[str, SignerFactory]] = None) -> SignerRegistry:
    """
    Build a signer for every supported provider.
    The primary provider must build or FatalStartupError is raised; any other
    provider that fails is logged and left out of the registry.
    """
    factories = SIGNER_FACTORIES if factories is None else factories
    primary = settings.PRIMARY_PROVIDER
    signers: Dict[str, Signer] = {}

    for provider in settings.supported_providers_list:
        try:
            factory = factories.get(provider)
            if factory is None:
                raise LookupError(f"no signer implementation for provider '{provider}'")
            signers[provider] = factory(settings)
        except Exception as e:
            if provider == primary:
                raise FatalStartupError(f"could not create {provider} presigner: {e}") from e
            logger.warning("could not create %s presigner: %s", provider, e)
            continue
        logger.info("registered %s presigner", provider)

    return SignerRegistry(signers)
