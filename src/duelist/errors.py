"""Error taxonomy shared by the extraction pipeline, the stores and the API.

Every error carries the HTTP status it maps to; the message is what the client
sees in the ``error`` field.
"""


class DueListError(Exception):
    status_code = 500


class NoFileProvided(DueListError):
    status_code = 400

    def __init__(self, message: str = "No file uploaded"):
        super().__init__(message)


class UnsupportedMediaType(DueListError):
    status_code = 400

    def __init__(
        self,
        message: str = "Invalid file type. Only PDF, DOCX, and TXT files are allowed.",
    ):
        super().__init__(message)


class FileTooLarge(DueListError):
    status_code = 400

    def __init__(self, message: str = "File too large. Maximum size is 10MB."):
        super().__init__(message)


class ExtractionFailed(DueListError):
    status_code = 400


class EmptyDocument(DueListError):
    status_code = 400

    def __init__(self, message: str = "No text found in the uploaded file"):
        super().__init__(message)


class ModelCallFailed(DueListError):
    status_code = 500


class MalformedModelResponse(DueListError):
    status_code = 500


class BackendError(DueListError):
    status_code = 500


class NotFound(DueListError):
    status_code = 404

    def __init__(self, message: str = "Task not found"):
        super().__init__(message)


class InvalidTaskUpdate(DueListError):
    status_code = 400
