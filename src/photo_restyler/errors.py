"""Failure taxonomy for the generation pipeline.

Adapters and services raise whatever their libraries raise; the pipeline
maps every failure onto one of these classes before publishing it.
"""


class PipelineError(Exception):
    """Base class for classified pipeline failures."""


class UploadFailure(PipelineError):
    """The original image could not be stored after retries."""


class BackendFailure(PipelineError):
    """The generation backend failed or produced nothing usable."""


class BackendAuthError(BackendFailure):
    """The generation backend rejected our credentials."""


class GenerationTimeout(BackendFailure):
    """The generation stream did not finish in time. Safe to retry."""


class PartialVariantFailure(PipelineError):
    """A single generated variant could not be uploaded."""

    def __init__(self, index: int, cause: Exception) -> None:
        super().__init__(f"Variant {index} upload failed: {cause}")
        self.index = index
        self.cause = cause


class PersistenceFailure(PipelineError):
    """A document store write failed."""


class DuplicatePhotoError(PersistenceFailure):
    """A photo record with the same id already exists for the owner."""


class PreconditionFailure(PipelineError):
    """The call was rejected before any network work started."""


class InvalidStateError(PreconditionFailure):
    """The pipeline is not in a state that allows the operation."""
