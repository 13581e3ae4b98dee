"""Exception types shared across the service."""


class CompressionError(Exception):
    """Base class for image compression failures.

    Callers are expected to catch this and upload the original file instead.
    """


class DecodeFailure(CompressionError):
    """The source bytes could not be interpreted as an image."""


class EncodeFailure(CompressionError):
    """Resampling or the target-format encoder could not produce output."""


class UnsupportedEnvironment(CompressionError):
    """No encoder is available for the effective output format."""


class StorageError(Exception):
    """Raised for invalid buckets/paths and failed storage operations."""
