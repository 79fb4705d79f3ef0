"""StudyPet: adaptive spaced repetition that grows a virtual pet."""

from studypet.consts import VERSION

__version__ = VERSION
