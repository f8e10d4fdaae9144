"""Error taxonomy for the conversation core.

Every error raised on purpose by cortex derives from CortexError so callers
can distinguish them from programming errors.
"""


class CortexError(Exception):
    """Base class for cortex errors."""


class UnsupportedAttachmentType(CortexError):
    """The selected file's media type cannot be turned into an attachment."""

    def __init__(self, file_name: str, mime_type: str):
        self.file_name = file_name
        self.mime_type = mime_type
        super().__init__(
            f"Unsupported file type for '{file_name}' ({mime_type or 'unknown'}). "
            "Please upload Images, PDF, DOCX, or TXT."
        )


class AttachmentExtractionFailure(CortexError):
    """Text could not be extracted from a document container."""

    def __init__(self, file_name: str, reason: str):
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"Failed to process file '{file_name}': {reason}")


class RemoteServiceFailure(CortexError):
    """The remote generative service failed to establish or stream a turn."""


class PersistenceCorruption(CortexError):
    """The durable session record could not be decoded."""
