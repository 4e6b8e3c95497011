"""Per-file error kinds.

Every error raised while handling a single document derives from
RenameError. The processing service catches them at the file boundary and
turns them into a reported outcome, so one bad file never stops a batch.
"""


class RenameError(Exception):
    """Base class for recoverable per-file failures."""

    kind = "RenameError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ExtractionFailure(RenameError):
    """PDF could not be read or its text could not be extracted."""

    kind = "ExtractionFailure"


class OversizedInput(RenameError):
    """File or extracted text exceeds the configured limit."""

    kind = "OversizedInput"


class UnrecognizedDocument(RenameError):
    """No classifier rule matched the document text."""

    kind = "UnrecognizedDocument"


class MissingRequiredField(RenameError):
    """A field needed for the filename (the date) could not be found."""

    kind = "MissingRequiredField"


class InvalidTargetPath(RenameError):
    """Target path failed validation or would leave the scan root."""

    kind = "InvalidTargetPath"


class RenameCollisionExhausted(RenameError):
    """No free disambiguated name within the retry limit."""

    kind = "RenameCollisionExhausted"


class FilesystemError(RenameError):
    """The rename itself failed at the OS level."""

    kind = "FilesystemError"
