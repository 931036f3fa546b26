"""Errors raised while turning uploaded text into log entries."""


class LogParseError(Exception):
    """Base class for every ingestion failure."""


class InvalidJson(LogParseError):
    """Client export is not syntactically valid JSON."""

    def __init__(self, cause: Exception):
        super().__init__(f"Invalid JSON: {cause}")
        self.cause = cause


class InvalidData(LogParseError):
    """JSON decoded but the export envelope is missing or malformed."""

    def __init__(self, fields: tuple[str, ...], details: tuple[str, ...] = ()):
        self.fields = tuple(fields)
        self.details = tuple(details)
        message = "Invalid data: " + ", ".join(self.fields)
        if self.details:
            message += " (" + "; ".join(self.details) + ")"
        super().__init__(message)


class UnknownFormat(LogParseError):
    """Content is neither a client export nor server text logs."""

    def __init__(self, message: str = "unknown log format"):
        super().__init__(message)
