# backend/file_processor/errors.py


class FileProcessorError(Exception):
    status_code = 500
    prefix = ""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        return f"{self.prefix}{self.message}"


class ValidationError(FileProcessorError):
    """Client-correctable rejection: missing file, bad type, too large."""
    status_code = 400


class StorageError(FileProcessorError):
    pass


class ParseError(FileProcessorError):
    prefix = "Error processing file: "


class UnsupportedFormatError(FileProcessorError):
    prefix = "Error processing file: "


class ProcessingTimeoutError(FileProcessorError):
    prefix = "Error processing file: "


class ProcessingError(FileProcessorError):
    prefix = "Error processing file: "
