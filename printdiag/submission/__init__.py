"""
PrintDiag Troubleshooting Submission Module

Validates a G-code file and a problem description, compresses the file,
posts both to the troubleshooting service and resolves the reply into a
single message.

Validation: extension and size policy, minimum description words
Packaging: gzip compression and a two-part multipart request
Resolution: guidance on success, one error message on any failure
"""

from .controller import SubmissionController
from .file_validator import FileValidator, count_words
from .compressor import compress, decompress
from .request_builder import build_request, compress_artifact
from .response_resolver import resolve, buffer_response, DEFAULT_GUIDANCE
from .api_client import TroubleshootingAPIClient
from .models import (
    Artifact,
    ArtifactCandidate,
    CompressedPayload,
    Failure,
    ProblemDescription,
    RawResponse,
    SubmissionConfig,
    SubmissionRequest,
    SubmissionState,
    Success,
    ValidationReason,
    ValidationResult,
)
from .exceptions import (
    SubmissionError,
    ValidationError,
    InvalidExtensionError,
    FileTooLargeError,
    DescriptionTooShortError,
    CompressionError,
    TransportError,
    TransportTimeoutError,
    TransportConnectionError,
    ServerError,
    MalformedSuccessError,
    ConfigurationError,
)

__all__ = [
    'SubmissionController',
    'FileValidator',
    'count_words',
    'compress',
    'decompress',
    'build_request',
    'compress_artifact',
    'resolve',
    'buffer_response',
    'DEFAULT_GUIDANCE',
    'TroubleshootingAPIClient',
    'Artifact',
    'ArtifactCandidate',
    'CompressedPayload',
    'Failure',
    'ProblemDescription',
    'RawResponse',
    'SubmissionConfig',
    'SubmissionRequest',
    'SubmissionState',
    'Success',
    'ValidationReason',
    'ValidationResult',
    'SubmissionError',
    'ValidationError',
    'InvalidExtensionError',
    'FileTooLargeError',
    'DescriptionTooShortError',
    'CompressionError',
    'TransportError',
    'TransportTimeoutError',
    'TransportConnectionError',
    'ServerError',
    'MalformedSuccessError',
    'ConfigurationError',
]
