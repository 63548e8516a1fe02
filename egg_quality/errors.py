"""Egg-quality-monitor exceptions."""


class EggQualityError(Exception):
    """Base class for errors raised by the dashboard's collaborators."""


class DataSourceError(EggQualityError):
    """Raised when records cannot be fetched or parsed from a data source.

    The message is meant to be shown to the user as-is.
    """


class ChatServiceError(EggQualityError):
    """Raised when the language-model chat endpoint fails or is not configured."""


class ReportExportError(EggQualityError):
    """Raised when the PDF report cannot be built."""
