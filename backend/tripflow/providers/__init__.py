"""Research and options collaborators."""

from backend.tripflow.providers.base import OptionsGenerator, ResearchProvider
from backend.tripflow.providers.fixtures import FixtureOptionsGenerator, FixtureResearchProvider

__all__ = [
    "FixtureOptionsGenerator",
    "FixtureResearchProvider",
    "OptionsGenerator",
    "ResearchProvider",
]
