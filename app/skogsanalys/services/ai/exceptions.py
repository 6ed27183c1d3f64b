"""
Errors raised by the extraction service.
"""


class AIServiceError(Exception):
    """The completion service failed or could not be reached."""

    pass


class ExtractionParseError(AIServiceError):
    """The model answered, but no property record could be read from it."""

    pass
