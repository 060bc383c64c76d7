# protocol/__init__.py

# Core classes
from .core import Command, CommandParser, Keyword
from .observations import Observation, ObservationQueue

__all__ = [
    "Command", "CommandParser", "Keyword",
    "Observation", "ObservationQueue"]
