"""Map gesture handling."""

from .disambiguator import (
    GestureDisambiguator,
    GesturePhase,
    GestureTracker,
    InputEvent,
    InputPhase,
    PinPlacementRequested,
    PointerKind,
    TargetKind,
)

__all__ = [
    'GestureDisambiguator',
    'GesturePhase',
    'GestureTracker',
    'InputEvent',
    'InputPhase',
    'PinPlacementRequested',
    'PointerKind',
    'TargetKind',
]
