"""
Tap versus drag disambiguation for map input.

The map widget reports raw pointer and touch events. A pin is placed only for
a genuine tap on the map surface: press and release without moving past the
drag threshold, not starting or ending on a marker or popup, and never
during a multi-touch (pinch) gesture.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from ..exceptions import InvalidCoordinateError
from ..models.coordinates import Coordinate, validate_coordinate, wrap_longitude

logger = logging.getLogger(__name__)

DEFAULT_DRAG_THRESHOLD_PX = 5.0


class InputPhase(Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    CANCEL = "cancel"


class PointerKind(Enum):
    MOUSE = "mouse"
    TOUCH = "touch"


class TargetKind(Enum):
    MAP = "map"
    MARKER = "marker"
    POPUP = "popup"


class GesturePhase(Enum):
    IDLE = "idle"
    TRACKING = "tracking"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class InputEvent:
    """
    One normalised input event from the map widget.

    x/y are screen pixels; latitude/longitude are the map coordinate under the
    pointer, when the widget can provide one. touch_count is the number of
    touch points involved in the event (always 1 for mouse input).
    """
    phase: InputPhase
    pointer: PointerKind
    x: float
    y: float
    target: TargetKind = TargetKind.MAP
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    touch_count: int = 1


@dataclass(frozen=True)
class PinPlacementRequested:
    coordinate: Coordinate


@dataclass
class GestureState:
    origin: Tuple[float, float]
    exceeded_threshold: bool = False


class GestureTracker:
    """State machine for one input sequence of a single pointer kind"""

    def __init__(self, threshold_px: float = DEFAULT_DRAG_THRESHOLD_PX):
        self.threshold_px = threshold_px
        self._state: Optional[GestureState] = None

    @property
    def phase(self) -> GesturePhase:
        if self._state is None:
            return GesturePhase.IDLE
        if self._state.exceeded_threshold:
            return GesturePhase.DRAGGING
        return GesturePhase.TRACKING

    def reset(self) -> None:
        self._state = None

    def handle(self, event: InputEvent) -> Optional[PinPlacementRequested]:
        if event.touch_count > 1:
            self.reset()
            return None

        if event.phase == InputPhase.DOWN:
            if event.target != TargetKind.MAP:
                # Markers and popups handle their own clicks
                self.reset()
                return None
            self._state = GestureState(origin=(event.x, event.y))
            return None

        if event.phase == InputPhase.MOVE:
            if self._state is not None and not self._state.exceeded_threshold:
                dx = abs(event.x - self._state.origin[0])
                dy = abs(event.y - self._state.origin[1])
                if dx > self.threshold_px or dy > self.threshold_px:
                    self._state.exceeded_threshold = True
            return None

        if event.phase == InputPhase.UP:
            state = self._state
            self.reset()
            if state is None or state.exceeded_threshold or event.target != TargetKind.MAP:
                return None
            return self._placement_for(event)

        # CANCEL
        self.reset()
        return None

    def _placement_for(self, event: InputEvent) -> Optional[PinPlacementRequested]:
        if event.latitude is None or event.longitude is None:
            logger.debug("Tap released without a map coordinate; ignoring")
            return None
        try:
            coordinate = validate_coordinate(event.latitude, wrap_longitude(event.longitude))
        except InvalidCoordinateError as e:
            logger.debug(f"Tap released on an invalid coordinate; ignoring ({e.reason})")
            return None
        return PinPlacementRequested(coordinate=coordinate)


PlacementListener = Callable[[PinPlacementRequested], None]


class GestureDisambiguator:
    """
    Routes map input to one tracker per pointer kind and emits pin placements.

    Mouse and touch sequences are tracked independently but share the same
    drag threshold.
    """

    def __init__(self, threshold_px: float = DEFAULT_DRAG_THRESHOLD_PX):
        self.threshold_px = threshold_px
        self._trackers: Dict[PointerKind, GestureTracker] = {
            kind: GestureTracker(threshold_px) for kind in PointerKind
        }
        self._listeners: List[PlacementListener] = []

    @classmethod
    def from_settings(cls, settings) -> "GestureDisambiguator":
        return cls(threshold_px=settings.GESTURE_DRAG_THRESHOLD_PX)

    def add_listener(self, listener: PlacementListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def phase(self, pointer: PointerKind) -> GesturePhase:
        return self._trackers[pointer].phase

    def handle(self, event: InputEvent) -> Optional[PinPlacementRequested]:
        placement = self._trackers[event.pointer].handle(event)
        if placement is not None:
            logger.debug(f"Pin placement requested at {placement.coordinate.as_tuple()}")
            for listener in list(self._listeners):
                try:
                    listener(placement)
                except Exception:
                    logger.exception("Pin placement listener raised")
        return placement

    def handle_all(self, events) -> List[PinPlacementRequested]:
        """Feed a sequence of events and collect every placement emitted"""
        placements = []
        for event in events:
            placement = self.handle(event)
            if placement is not None:
                placements.append(placement)
        return placements

    def reset(self) -> None:
        for tracker in self._trackers.values():
            tracker.reset()
