#!/usr/bin/env python3
"""
Upload a file through the presign gateway.

Usage:
    presign-upload --api https://xyz.execute-api.us-east-1.amazonaws.com/v1/put \
        --region us-east-1 --bucket my-bucket --key path/to/object.json \
        --kms alias/my-key --payload ./object.json

From a source checkout without installing, run it as a module from the repo root:
    python -m scripts.upload --api ...

The gateway call is SigV4-signed for API Gateway (execute-api) with the caller's
AWS credentials; the payload is then PUT directly to every returned URL.
"""

from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import boto3
import httpx
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest

from apps.presign.schemas import EncryptionSpec, PresignedUrl, PutObjectRequest, PutObjectResponse, TargetRef
from constants.providers import EncryptionType, Provider


class UploadError(Exception):
    """Raised when requesting URLs or uploading to a target fails"""
    pass


def build_put_request(
    bucket: str, key: str, kms_key: str, content_type: str, ttl: timedelta
) -> PutObjectRequest:
    return PutObjectRequest(
        content_type=content_type,
        expires_ms=int(ttl.total_seconds() * 1000),
        replication_targets=[
            TargetRef(
                provider=Provider.AWS.value,
                bucket=bucket,
                key=key,
                encryption=EncryptionSpec(type=EncryptionType.CUSTOMER_MANAGED.value, key_ref=kms_key),
            )
        ],
    )


def sign_gateway_request(api_url: str, body: bytes, region: str, credentials) -> dict:
    """
    Return the headers for a SigV4-signed POST to an API Gateway endpoint.
    """
    aws_request = AWSRequest(
        method="POST",
        url=api_url,
        data=body,
        headers={"Content-Type": "application/json"},
    )
    SigV4Auth(credentials, "execute-api", region).add_auth(aws_request)
    return dict(aws_request.headers.items())


def request_presigned_urls(client: httpx.Client, api_url: str, body: bytes, headers: dict) -> List[PresignedUrl]:
    resp = client.post(api_url, content=body, headers=headers)
    print(f"Response status: {resp.status_code}")
    if resp.status_code // 100 != 2:
        raise UploadError(f"presign request failed: {resp.status_code}: {resp.text}")

    try:
        out = PutObjectResponse.model_validate_json(resp.content)
    except ValueError as e:
        raise UploadError(f"failed to parse response: {e}") from e

    if not out.targets:
        raise UploadError("no targets returned")
    return out.targets


def put_with_presigned_url(client: httpx.Client, target: PresignedUrl, data: bytes, content_type: str) -> None:
    headers = dict(target.headers)
    # httpx derives Host from the URL
    headers.pop("Host", None)
    headers["Content-Type"] = content_type

    resp = client.put(target.url, content=data, headers=headers)
    if resp.status_code // 100 != 2:
        raise UploadError(f"put failed: {resp.status_code}: {resp.text}")


def upload(
    client: httpx.Client,
    api_url: str,
    region: str,
    credentials,
    request: PutObjectRequest,
    payload: bytes,
) -> List[PresignedUrl]:
    body = request.model_dump_json(exclude_none=True).encode("utf-8")
    headers = sign_gateway_request(api_url, body, region, credentials)
    targets = request_presigned_urls(client, api_url, body, headers)

    for i, t in enumerate(targets):
        try:
            put_with_presigned_url(client, t, payload, request.content_type)
        except (UploadError, httpx.HTTPError) as e:
            raise UploadError(f"upload {i} failed for {t.target.bucket}/{t.target.key}: {e}") from e
        print(f"uploaded target {i}: {t.target.bucket}/{t.target.key}")
    return targets


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upload a file through the presign gateway")
    parser.add_argument("--api", required=True, help="API Gateway presign endpoint")
    parser.add_argument("--region", required=True, help="AWS region")
    parser.add_argument("--bucket", required=True, help="S3 bucket")
    parser.add_argument("--key", required=True, help="S3 key")
    parser.add_argument("--kms", required=True, help="KMS key alias/ARN")
    parser.add_argument("--content-type", default="application/json", help="Content-Type for object")
    parser.add_argument("--ttl", type=int, default=120, help="Presign TTL in seconds")
    parser.add_argument("--payload", required=True, help="Path to payload file")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    try:
        payload = Path(args.payload).read_bytes()
    except OSError as e:
        print(f"failed to read payload file: {e}", file=sys.stderr)
        return 1

    credentials = boto3.Session(region_name=args.region).get_credentials()
    if credentials is None:
        print("failed to retrieve AWS credentials", file=sys.stderr)
        return 1

    request = build_put_request(
        args.bucket, args.key, args.kms, args.content_type, timedelta(seconds=args.ttl)
    )
    try:
        with httpx.Client(timeout=30.0) as client:
            upload(client, args.api, args.region, credentials, request, payload)
    except (UploadError, httpx.HTTPError) as e:
        print(str(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
