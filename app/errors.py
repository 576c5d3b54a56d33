"""
Error taxonomy for the donation pipeline.

Every error carries a stable `code` (sent to clients) and an HTTP `status`.
Transient errors are retryable by whoever called us; they never mean the
operation half-succeeded.
"""


class DonationError(Exception):
    code = "internal_error"
    status = 500
    retryable = False

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidAmount(DonationError):
    code = "invalid_amount"
    status = 400


class InvalidBeneficiary(DonationError):
    code = "invalid_beneficiary"
    status = 400


class AuthenticationError(DonationError):
    code = "invalid_signature"
    status = 400


class TransientError(DonationError):
    status = 503
    retryable = True


class ProviderUnavailable(TransientError):
    code = "provider_unavailable"


class DirectoryUnavailable(TransientError):
    code = "directory_unavailable"


class StorageError(TransientError):
    code = "storage_unavailable"
