"""UI controllers package.

Controller classes here mediate between front-end widgets and the core
services and models.
"""

from .timeline_controller import TimelineController

__all__: list[str] = ["TimelineController"]
