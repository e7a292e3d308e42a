import asyncio
import logging
from datetime import timedelta
from typing import Callable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from apps.presign.exception import (
    DecodeError,
    PresignTimeoutError,
    UpstreamError,
    ValidationError,
)
from apps.presign.options import PutOptions, ttl_from_millis
from apps.presign.registry import SignerRegistry
from apps.presign.schemas import (
    GetObjectRequest,
    GetObjectResponse,
    PresignedUrl,
    PutObjectRequest,
    PutObjectResponse,
    TargetRef,
)
from apps.presign.signers.base import Signer
from apps.presign.validator import validate_get_request, validate_put_request
from settings.config import Settings

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def decode_request(model: Type[M], raw: bytes) -> M:
    """
    Parse a JSON request body into model, raising DecodeError when it is not
    valid JSON or does not match the wire shape.
    """
    try:
        return model.model_validate_json(raw or b"")
    except PydanticValidationError as e:
        raise DecodeError(f"failed to decode request: {e}") from e


class PresignService:
    """
    Orchestrates one presign request:
    decode -> validate -> sign each target in order -> aggregate.
    Any failure aborts the whole request; partial results are never returned.
    """

    def __init__(
        self,
        registry: SignerRegistry,
        timeout_seconds: Optional[float] = None,
        get_default_ttl: timedelta = timedelta(minutes=15),
        get_max_ttl: timedelta = timedelta(hours=1),
    ):
        self.registry = registry
        self.timeout_seconds = timeout_seconds
        self.get_default_ttl = get_default_ttl
        self.get_max_ttl = get_max_ttl

    @classmethod
    def from_settings(cls, registry: SignerRegistry, settings: Settings) -> "PresignService":
        return cls(
            registry,
            timeout_seconds=settings.PRESIGN_TIMEOUT_SECONDS or None,
            get_default_ttl=timedelta(seconds=settings.PRESIGN_GET_DEFAULT_TTL_SECONDS),
            get_max_ttl=timedelta(seconds=settings.PRESIGN_GET_MAX_TTL_SECONDS),
        )

    async def presign_put(self, raw: bytes) -> PutObjectResponse:
        in_ = decode_request(PutObjectRequest, raw)
        try:
            validate_put_request(in_)
        except ValidationError as e:
            logger.info("rejected put request: %s", e)
            raise ValidationError(f"failed to validate request: {e}") from e

        ttl = ttl_from_millis(in_.expires_ms)

        def _signer_call(signer: Signer, t: TargetRef) -> Callable[[], PresignedUrl]:
            opts = PutOptions(
                content_type=in_.content_type,
                metadata=in_.metadata,
                ttl=ttl,
                encryption=t.encryption,
            )
            return lambda: signer.presign_put(t.bucket, t.key, opts)

        urls = await self._with_deadline(self._sign_all(in_.replication_targets, _signer_call))
        return PutObjectResponse(targets=urls)

    async def presign_get(self, raw: bytes) -> GetObjectResponse:
        in_ = decode_request(GetObjectRequest, raw)
        try:
            validate_get_request(in_, self.get_max_ttl)
        except ValidationError as e:
            logger.info("rejected get request: %s", e)
            raise ValidationError(f"failed to validate request: {e}") from e

        ttl = self.get_default_ttl if in_.expires_ms is None else ttl_from_millis(in_.expires_ms)

        def _signer_call(signer: Signer, t: TargetRef) -> Callable[[], PresignedUrl]:
            return lambda: signer.presign_get(t.bucket, t.key, ttl)

        urls = await self._with_deadline(self._sign_all(in_.targets, _signer_call))
        return GetObjectResponse(targets=urls)

    async def _sign_all(
        self,
        targets: List[TargetRef],
        make_call: Callable[[Signer, TargetRef], Callable[[], PresignedUrl]],
    ) -> List[PresignedUrl]:
        urls: List[PresignedUrl] = []
        for t in targets:
            signer = self.registry.lookup(t.provider)
            try:
                url = await asyncio.to_thread(make_call(signer, t))
            except Exception as e:
                logger.exception("presign failed for %s (bucket=%s)", t.provider, t.bucket)
                raise UpstreamError(t.provider, e) from e
            urls.append(url)
        return urls

    async def _with_deadline(self, coro):
        if self.timeout_seconds is None:
            return await coro
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise PresignTimeoutError(
                f"presign timed out after {self.timeout_seconds:g}s"
            ) from e
