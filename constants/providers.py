"""
Provider and encryption identifiers shared by the presign app and the uploader.
Values are the wire strings used in request/response bodies.
"""

from enum import Enum


class Provider(str, Enum):
    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"


class EncryptionType(str, Enum):
    PROVIDER_MANAGED = "provider_managed"
    CUSTOMER_MANAGED = "customer_managed"
