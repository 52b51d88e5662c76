"""
Builds the outbound multipart request from a compressed artifact and the
problem description.
"""

from .compressor import compress
from .exceptions import DescriptionTooShortError
from .file_validator import count_words
from .models import Artifact, CompressedPayload, SubmissionRequest

MIN_DESCRIPTION_WORDS = 3


def compress_artifact(artifact: Artifact, content: bytes, level: int = 6) -> CompressedPayload:
    """Compress the artifact bytes and name the payload `<name>.gz`"""
    return CompressedPayload.for_artifact(artifact, compress(content, level=level))


def build_request(
    compressed: CompressedPayload,
    description: str,
    min_words: int = MIN_DESCRIPTION_WORDS,
) -> SubmissionRequest:
    """
    Assemble the two-part request.

    The description is checked for the minimum word count but stored exactly
    as given; trimming only happens for the check.

    Raises:
        DescriptionTooShortError: if the description has too few words
    """
    if count_words(description) < min_words:
        raise DescriptionTooShortError(
            f"Please describe the problem in at least {min_words} words"
        )

    return SubmissionRequest(
        file_name=compressed.original_name,
        file_bytes=compressed.content,
        description=description,
    )
