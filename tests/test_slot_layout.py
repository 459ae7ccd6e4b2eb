from __future__ import annotations

import json
from pathlib import Path

import pytest

from lounge_app.config import DEFAULT_SLOT_ORDER
from lounge_app.device_placement import DragController, compute_slot_positions, nearest_slot
from lounge_app.errors import DeviceNotFound, SlotOutOfRange
from lounge_app.logging_orchestrator import LoggingOrchestrator
from lounge_app.slot_layout import SlotLayout


DEVICE_IDS = list(range(1, 19))


def build_layout(path: Path) -> SlotLayout:
    layout = SlotLayout(path, DEVICE_IDS, DEFAULT_SLOT_ORDER, LoggingOrchestrator("test_logger"))
    layout.load()
    return layout


def read_layout_file(path: Path) -> dict[int, int]:
    return {item["device_id"]: item["slot"] for item in json.loads(path.read_text(encoding="utf-8"))}


def test_fresh_layout_follows_preference_order_and_persists(tmp_path: Path) -> None:
    path = tmp_path / "device_layout.json"
    layout = build_layout(path)

    assert [layout.device_at(slot) for slot in range(18)] == list(DEFAULT_SLOT_ORDER)
    assert read_layout_file(path) == layout.as_dict()


def test_unparseable_layout_is_rebuilt(tmp_path: Path) -> None:
    path = tmp_path / "device_layout.json"
    path.write_text("not json", encoding="utf-8")

    layout = build_layout(path)

    assert layout.slot_for(16) == 0
    assert read_layout_file(path) == layout.as_dict()


def test_partial_layout_keeps_known_devices_and_fills_lowest_slots(tmp_path: Path) -> None:
    path = tmp_path / "device_layout.json"
    path.write_text(json.dumps([{"device_id": 3, "slot": 0}, {"device_id": 99, "slot": 1}]), encoding="utf-8")

    layout = build_layout(path)

    assert layout.slot_for(3) == 0
    assert layout.slot_for(16) == 1
    assert layout.slot_for(15) == 2
    assert sorted(layout.as_dict().values()) == list(range(18))
    assert 99 not in read_layout_file(path)


def test_move_device_swaps_with_owner(tmp_path: Path) -> None:
    path = tmp_path / "device_layout.json"
    layout = build_layout(path)

    assert layout.move_device(16, 5) is True

    assert layout.slot_for(16) == 5
    assert layout.slot_for(DEFAULT_SLOT_ORDER[5]) == 0
    assert read_layout_file(path) == layout.as_dict()
    with pytest.raises(SlotOutOfRange):
        layout.move_device(16, 18)
    with pytest.raises(DeviceNotFound):
        layout.move_device(42, 0)


def test_layout_round_trips_through_file(tmp_path: Path) -> None:
    path = tmp_path / "device_layout.json"
    layout = build_layout(path)
    layout.move_device(1, 0)

    assert build_layout(path).as_dict() == layout.as_dict()


def test_slot_positions_follow_row_template() -> None:
    positions = compute_slot_positions(1000, 800, 18)

    assert len(positions) == 18
    assert [y for _x, y in positions[:3]] == [24, 24, 24]
    assert positions[12][1] == 24 + 4 * 150
    assert positions[16] == (1000 * 0.85 + 48, 24 + 150)
    assert positions[17] == (1000 * 0.85 + 48, 24 + 3 * 150)
    assert compute_slot_positions(0, 0, 18) == []


def test_nearest_slot_uses_squared_distance() -> None:
    positions = [(0.0, 0.0), (10.0, 0.0), (10.0, 0.0)]
    assert nearest_slot((6.0, 1.0), positions) == 1
    assert nearest_slot((1.0, 1.0), positions) == 0
    assert nearest_slot((1.0, 1.0), []) is None


def test_drag_release_near_other_slot_swaps_devices(tmp_path: Path) -> None:
    path = tmp_path / "device_layout.json"
    path.write_text(json.dumps([{"device_id": 3, "slot": 0}, {"device_id": 4, "slot": 1}]), encoding="utf-8")
    layout = build_layout(path)
    drag = DragController(layout)
    drag.resize(1000, 800)

    start = drag.position_for(3)
    target = drag.slot_positions[1]
    assert drag.begin_drag((start[0] + 5, start[1] + 5)) == 3
    drag.update_drag((target[0] + 12, target[1] - 7))
    result = drag.end_drag()

    assert result.moved is True
    assert result.swapped_with == 4
    assert layout.slot_for(3) == 1
    assert layout.slot_for(4) == 0
    assert read_layout_file(path)[3] == 1
    assert read_layout_file(path)[4] == 0
    assert not drag.is_dragging


def test_drag_back_to_own_slot_writes_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "device_layout.json"
    layout = build_layout(path)
    drag = DragController(layout)
    drag.resize(1000, 800)
    before = layout.as_dict()
    saves: list[int] = []
    monkeypatch.setattr(SlotLayout, "save", lambda self: saves.append(1))

    centre = drag.position_for(16)
    drag.begin_drag(centre)
    drag.update_drag((centre[0] + 20, centre[1] + 20))
    result = drag.end_drag()

    assert result.moved is False
    assert layout.as_dict() == before
    assert saves == []


def test_drag_position_is_clamped_to_surface(tmp_path: Path) -> None:
    drag = DragController(build_layout(tmp_path / "device_layout.json"))
    drag.resize(1000, 800)
    centre = drag.position_for(16)

    drag.begin_drag(centre)
    assert drag.position_for(16) == centre
    assert drag.update_drag((-500, -500)) == (56, 56)
    assert drag.update_drag((5000, 5000)) == (1000 - 56, 800 - 56)
    drag.cancel_drag()
    assert drag.position_for(16) == centre


def test_drag_outside_icons_does_nothing(tmp_path: Path) -> None:
    drag = DragController(build_layout(tmp_path / "device_layout.json"))
    drag.resize(1000, 800)

    assert drag.begin_drag((999, 799)) is None
    assert drag.update_drag((10, 10)) is None
    assert drag.end_drag() is None


def test_reconcile_after_device_removal_keeps_bijection(tmp_path: Path) -> None:
    layout = build_layout(tmp_path / "device_layout.json")

    assert layout.reconcile(range(1, 17)) is True

    assert sorted(layout.as_dict()) == list(range(1, 17))
    assert sorted(layout.as_dict().values()) == list(range(16))
    assert layout.slot_for(16) == 0


def test_drag_before_first_resize_picks_nothing(tmp_path: Path) -> None:
    drag = DragController(build_layout(tmp_path / "device_layout.json"))
    fallback = drag.position_for(16)

    assert drag.position_for(1) == fallback
    assert drag.begin_drag(fallback) is None
    assert drag.is_dragging is False
    assert drag.end_drag() is None
