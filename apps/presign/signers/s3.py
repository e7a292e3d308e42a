import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import boto3
from botocore.config import Config

from apps.presign.options import DEFAULT_TTL, PutOptions
from apps.presign.schemas import PresignedUrl, TargetRef
from apps.presign.signers.base import Signer, flatten_headers
from constants.providers import EncryptionType, Provider
from settings.config import Settings

logger = logging.getLogger(__name__)

# PutObject parameters that botocore serializes as request headers
_PARAM_HEADERS = {
    "ContentType": "Content-Type",
    "ACL": "x-amz-acl",
    "ServerSideEncryption": "x-amz-server-side-encryption",
    "SSEKMSKeyId": "x-amz-server-side-encryption-aws-kms-key-id",
}


@dataclass
class PresignedRequest:
    """
    Result of a SigV4 query presign: the URL plus every header that was
    signed into it, possibly with several values per name.
    """

    url: str
    signed_headers: Dict[str, List[str]] = field(default_factory=dict)


class BotoPresignClient:
    """
    Thin wrapper around a boto3 S3 client that also reports the signed headers.
    boto3 only returns the URL, so header values are rebuilt from the operation
    params and filtered by the X-Amz-SignedHeaders list embedded in the URL.
    """

    def __init__(self, client):
        self._client = client

    def presign(self, client_method: str, params: Dict[str, Any], expires_in: int) -> PresignedRequest:
        url = self._client.generate_presigned_url(
            ClientMethod=client_method,
            Params=params,
            ExpiresIn=expires_in,
        )
        return PresignedRequest(url=url, signed_headers=self._signed_headers(url, params))

    @staticmethod
    def _signed_headers(url: str, params: Dict[str, Any]) -> Dict[str, List[str]]:
        parsed = urlparse(url)
        candidates: Dict[str, List[str]] = {"Host": [parsed.netloc]}
        for param, header in _PARAM_HEADERS.items():
            if params.get(param):
                candidates[header] = [str(params[param])]
        for k, v in (params.get("Metadata") or {}).items():
            candidates[f"x-amz-meta-{k}"] = [v]

        signed = parse_qs(parsed.query).get("X-Amz-SignedHeaders")
        if not signed:
            return candidates
        names = set(signed[0].split(";"))
        return {h: v for h, v in candidates.items() if h.lower() in names}


class S3Signer(Signer):
    """
    Presigns S3 object uploads and downloads.
    Errors from boto3/botocore are raised unchanged; nothing is retried here.
    """

    def __init__(self, presigner: BotoPresignClient):
        self._presigner = presigner

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3Signer":
        """
        Build a signer from application settings.
        Prefers explicit credentials from settings, otherwise boto3's ambient
        credential chain (env, shared config, instance/task role) is used.
        """
        kwargs: dict = {
            "config": Config(
                signature_version="s3v4",
                retries={"max_attempts": 1, "mode": "standard"},
            ),
        }
        if settings.AWS_REGION:
            kwargs["region_name"] = settings.AWS_REGION
        if settings.AWS_S3_ENDPOINT_URL:
            kwargs["endpoint_url"] = settings.AWS_S3_ENDPOINT_URL
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
            kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
            if settings.AWS_SESSION_TOKEN:
                kwargs["aws_session_token"] = settings.AWS_SESSION_TOKEN

        client = boto3.client("s3", **kwargs)
        logger.info("S3 signer ready (region=%s)", client.meta.region_name)
        return cls(BotoPresignClient(client))

    def presign_put(self, bucket: str, key: str, opts: PutOptions) -> PresignedUrl:
        params: Dict[str, Any] = {"Bucket": bucket, "Key": key, "ACL": "private"}
        if opts.content_type:
            params["ContentType"] = opts.content_type

        enc = opts.encryption
        if enc is not None:
            if enc.type == EncryptionType.PROVIDER_MANAGED.value:
                params["ServerSideEncryption"] = "AES256"
            elif enc.type == EncryptionType.CUSTOMER_MANAGED.value:
                params["ServerSideEncryption"] = "aws:kms"
                params["SSEKMSKeyId"] = enc.key_ref

        params["Metadata"] = dict(opts.metadata)

        out = self._presigner.presign("put_object", params, _seconds(opts.ttl))
        return self._to_presigned_url(bucket, key, out)

    def presign_get(self, bucket: str, key: str, ttl: Optional[timedelta] = None) -> PresignedUrl:
        params = {"Bucket": bucket, "Key": key}
        out = self._presigner.presign("get_object", params, _seconds(ttl or DEFAULT_TTL))
        return self._to_presigned_url(bucket, key, out)

    @staticmethod
    def _to_presigned_url(bucket: str, key: str, out: PresignedRequest) -> PresignedUrl:
        return PresignedUrl(
            target=TargetRef(provider=Provider.AWS.value, bucket=bucket, key=key),
            url=out.url,
            headers=flatten_headers(out.signed_headers),
        )


def _seconds(ttl: timedelta) -> int:
    # S3 presign expiry has one second granularity
    return max(1, int(ttl.total_seconds()))
