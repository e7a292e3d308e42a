from fastapi import status


class PresignError(Exception):
    """Base exception for presign request failures"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DecodeError(PresignError):
    """Raised when the request body is not a well-formed request"""

    status_code = status.HTTP_400_BAD_REQUEST


class ValidationError(PresignError):
    """Raised when a decoded request breaks a validation or encryption rule"""

    status_code = status.HTTP_400_BAD_REQUEST


class ProviderNotConfiguredError(PresignError):
    """Raised when a target names a provider with no registered signer"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, provider: str):
        super().__init__(f"provider not configured: {provider}")
        self.provider = provider


class UpstreamError(PresignError):
    """Raised when the provider signing call fails; the SDK error is kept as __cause__"""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, provider: str, cause: BaseException):
        super().__init__(f"presign failed for {provider}: {cause}")
        self.provider = provider


class PresignTimeoutError(PresignError):
    """Raised when signing all targets takes longer than the request deadline"""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT


class FatalStartupError(RuntimeError):
    """Raised when the signer for the primary provider cannot be built"""
    pass
