"""
Error taxonomy.

Every pipeline error carries the content_id and the stage that raised it so
callers can report failures without parsing messages.
"""

from typing import Any, Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    def __init__(
        self,
        message: str,
        content_id: Optional[str] = None,
        stage: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.content_id = content_id
        self.stage = stage

    def tag(self, content_id: Optional[str], stage: Optional[str]) -> "PipelineError":
        """Fill in content_id/stage if the raiser did not know them."""
        if self.content_id is None:
            self.content_id = content_id
        if self.stage is None:
            self.stage = stage
        return self

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        context = []
        if self.content_id:
            context.append(f"content_id={self.content_id}")
        if self.stage:
            context.append(f"stage={self.stage}")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class ConfigError(PipelineError):
    """Invalid or missing configuration."""


class ValidationError(PipelineError):
    """Invalid data handed to a model or helper."""


class RetryableError(PipelineError):
    """Transient failure; safe to retry."""


class CompositionError(PipelineError):
    """Permanent failure while composing a video."""


class InputMismatchError(CompositionError):
    """Segment/asset count mismatch or missing input file. Raised before rendering."""


class EncodeFailureError(CompositionError):
    """The media engine exited non-zero."""


class EngineLaunchError(EncodeFailureError, RetryableError):
    """The media engine binary could not be started."""


class EncodeTimeoutError(CompositionError):
    """A media engine call exceeded its time budget."""


class InternalConsistencyError(CompositionError):
    """A stage expected an artifact that an earlier stage should have produced."""


class PublishError(PipelineError):
    """The artifact publisher failed. The local video is still valid."""

    def __init__(
        self,
        message: str,
        content_id: Optional[str] = None,
        stage: Optional[str] = "publish",
        output: Optional[Any] = None
    ):
        super().__init__(message, content_id=content_id, stage=stage)
        self.output = output
