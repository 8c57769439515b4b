"""Error taxonomy."""

from __future__ import annotations


class SalesCoachError(RuntimeError):
    """Base class for every failure raised by salescoach."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class SourceError(SalesCoachError):
    """Raised by an audio source before any analysis starts."""


class InvalidFileType(SourceError):
    pass


class FileTooLarge(SourceError):
    pass


class MicrophoneUnavailable(SourceError):
    pass


class AnalysisError(SalesCoachError):
    """Raised while a submission is being analyzed."""


class EncodingFailed(AnalysisError):
    pass


class AuthenticationFailed(AnalysisError):
    pass


class ServiceUnavailable(AnalysisError):
    pass


class EmptyResponse(AnalysisError):
    pass


class MalformedResponse(AnalysisError):
    pass


class SchemaViolation(AnalysisError):
    pass


class InvalidTransition(SalesCoachError):
    """Raised when the controller is asked for a transition it does not allow."""


class AnalysisInProgress(InvalidTransition):
    pass
