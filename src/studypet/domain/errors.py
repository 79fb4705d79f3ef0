"""Errors raised by the outer layers. The learning core itself never raises."""


class StudyPetError(Exception):
    """Base class for all StudyPet errors."""


class UpstreamDataUnavailable(StudyPetError):
    """A collaborator could not supply a record the caller depends on."""


class ContentGenerationError(StudyPetError):
    """The content generator failed or returned output that could not be parsed."""
