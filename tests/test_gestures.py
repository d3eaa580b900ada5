"""
Tests for tap versus drag disambiguation on the map surface.
"""
import pytest

from pinmap.gestures import (
    GestureDisambiguator,
    GesturePhase,
    InputEvent,
    InputPhase,
    PointerKind,
    TargetKind,
)

PARIS = (48.8566, 2.3522)


def mouse(phase, x, y, target=TargetKind.MAP, coordinate=PARIS):
    latitude, longitude = coordinate if coordinate else (None, None)
    return InputEvent(phase, PointerKind.MOUSE, x, y, target=target, latitude=latitude, longitude=longitude)


def touch(phase, x, y, touch_count=1, target=TargetKind.MAP, coordinate=PARIS):
    latitude, longitude = coordinate if coordinate else (None, None)
    return InputEvent(phase, PointerKind.TOUCH, x, y, target=target,
                      latitude=latitude, longitude=longitude, touch_count=touch_count)


@pytest.fixture
def disambiguator():
    return GestureDisambiguator(threshold_px=5.0)


class TestTapDetection:

    def test_tap_places_one_pin(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 100, 100),
            mouse(InputPhase.UP, 100, 100),
        ])

        assert len(placements) == 1
        assert placements[0].coordinate.as_tuple() == PARIS

    def test_small_jitter_is_still_a_tap(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 100, 100),
            mouse(InputPhase.MOVE, 103, 98),
            mouse(InputPhase.UP, 103, 98),
        ])
        assert len(placements) == 1

    def test_movement_of_exactly_threshold_is_a_tap(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 100, 100),
            mouse(InputPhase.MOVE, 105, 105),
            mouse(InputPhase.UP, 105, 105),
        ])
        assert len(placements) == 1

    def test_touch_tap_places_pin(self, disambiguator):
        placements = disambiguator.handle_all([
            touch(InputPhase.DOWN, 50, 50),
            touch(InputPhase.UP, 51, 50),
        ])
        assert len(placements) == 1

    def test_longitude_is_wrapped(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 10, 10, coordinate=(48.8566, 362.35)),
            mouse(InputPhase.UP, 10, 10, coordinate=(48.8566, 362.35)),
        ])
        assert placements[0].coordinate.longitude == pytest.approx(2.35)

    def test_each_tap_emits_separately(self, disambiguator):
        tap = [mouse(InputPhase.DOWN, 10, 10), mouse(InputPhase.UP, 10, 10)]
        assert len(disambiguator.handle_all(tap + tap)) == 2


class TestDragSuppression:

    def test_drag_places_nothing(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 100, 100),
            mouse(InputPhase.MOVE, 120, 100),
            mouse(InputPhase.MOVE, 140, 100),
            mouse(InputPhase.UP, 140, 100),
        ])
        assert placements == []

    def test_single_axis_past_threshold_is_a_drag(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 100, 100),
            mouse(InputPhase.MOVE, 100, 106),
            mouse(InputPhase.UP, 100, 106),
        ])
        assert placements == []

    def test_returning_to_origin_does_not_undo_a_drag(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 100, 100),
            mouse(InputPhase.MOVE, 130, 100),
            mouse(InputPhase.MOVE, 100, 100),
            mouse(InputPhase.UP, 100, 100),
        ])
        assert placements == []

    def test_drag_state_is_reported(self, disambiguator):
        disambiguator.handle(mouse(InputPhase.DOWN, 0, 0))
        assert disambiguator.phase(PointerKind.MOUSE) == GesturePhase.TRACKING
        disambiguator.handle(mouse(InputPhase.MOVE, 20, 0))
        assert disambiguator.phase(PointerKind.MOUSE) == GesturePhase.DRAGGING
        disambiguator.handle(mouse(InputPhase.UP, 20, 0))
        assert disambiguator.phase(PointerKind.MOUSE) == GesturePhase.IDLE

    def test_custom_threshold(self):
        disambiguator = GestureDisambiguator(threshold_px=20.0)
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 0, 0),
            mouse(InputPhase.MOVE, 15, 15),
            mouse(InputPhase.UP, 15, 15),
        ])
        assert len(placements) == 1


class TestAbortedGestures:

    def test_press_on_marker_places_nothing(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 10, 10, target=TargetKind.MARKER),
            mouse(InputPhase.UP, 10, 10),
        ])
        assert placements == []

    def test_release_on_popup_places_nothing(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 10, 10),
            mouse(InputPhase.UP, 10, 10, target=TargetKind.POPUP),
        ])
        assert placements == []

    def test_cancel_aborts(self, disambiguator):
        placements = disambiguator.handle_all([
            touch(InputPhase.DOWN, 10, 10),
            touch(InputPhase.CANCEL, 10, 10),
            touch(InputPhase.UP, 10, 10),
        ])
        assert placements == []

    def test_pinch_never_places(self, disambiguator):
        placements = disambiguator.handle_all([
            touch(InputPhase.DOWN, 10, 10),
            touch(InputPhase.MOVE, 11, 11, touch_count=2),
            touch(InputPhase.UP, 11, 11),
        ])
        assert placements == []

    def test_release_without_press_places_nothing(self, disambiguator):
        assert disambiguator.handle(mouse(InputPhase.UP, 10, 10)) is None

    def test_missing_coordinate_abstains(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 10, 10, coordinate=None),
            mouse(InputPhase.UP, 10, 10, coordinate=None),
        ])
        assert placements == []

    def test_invalid_latitude_abstains(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 10, 10, coordinate=(95.0, 2.0)),
            mouse(InputPhase.UP, 10, 10, coordinate=(95.0, 2.0)),
        ])
        assert placements == []


class TestPointerIndependence:

    def test_mouse_and_touch_are_tracked_separately(self, disambiguator):
        placements = disambiguator.handle_all([
            mouse(InputPhase.DOWN, 10, 10),
            touch(InputPhase.DOWN, 200, 200),
            touch(InputPhase.MOVE, 260, 200),
            touch(InputPhase.UP, 260, 200),
            mouse(InputPhase.UP, 10, 10),
        ])
        assert len(placements) == 1
        assert disambiguator.phase(PointerKind.TOUCH) == GesturePhase.IDLE

    def test_reset_clears_all_trackers(self, disambiguator):
        disambiguator.handle(mouse(InputPhase.DOWN, 10, 10))
        disambiguator.handle(touch(InputPhase.DOWN, 10, 10))
        disambiguator.reset()

        assert disambiguator.phase(PointerKind.MOUSE) == GesturePhase.IDLE
        assert disambiguator.phase(PointerKind.TOUCH) == GesturePhase.IDLE
        assert disambiguator.handle(mouse(InputPhase.UP, 10, 10)) is None


class TestListeners:

    def test_listener_receives_placements(self, disambiguator):
        received = []
        disambiguator.add_listener(received.append)

        disambiguator.handle_all([mouse(InputPhase.DOWN, 1, 1), mouse(InputPhase.UP, 1, 1)])

        assert len(received) == 1

    def test_removed_listener_is_not_called(self, disambiguator):
        received = []
        remove = disambiguator.add_listener(received.append)
        remove()

        disambiguator.handle_all([mouse(InputPhase.DOWN, 1, 1), mouse(InputPhase.UP, 1, 1)])

        assert received == []

    def test_failing_listener_does_not_block_placement(self, disambiguator):
        def broken(placement):
            raise RuntimeError("map not ready")

        disambiguator.add_listener(broken)
        placement = disambiguator.handle_all([mouse(InputPhase.DOWN, 1, 1), mouse(InputPhase.UP, 1, 1)])

        assert len(placement) == 1

    def test_from_settings_uses_configured_threshold(self, test_settings):
        settings = test_settings.model_copy(update={"GESTURE_DRAG_THRESHOLD_PX": 12.0})
        assert GestureDisambiguator.from_settings(settings).threshold_px == 12.0
