from __future__ import annotations

from dataclasses import dataclass

from lounge_app.slot_layout import SlotLayout


Point = tuple[float, float]


@dataclass(frozen=True, slots=True)
class PlacementGeometry:
    icon_size: float = 64
    spacing_x: float = 120
    spacing_y: float = 150
    margin: float = 24
    primary_width_share: float = 0.85
    row_template: tuple[int, ...] = (3, 3, 3, 3, 4)
    primary_slots: int = 16
    secondary_rows: tuple[int, ...] = (1, 3)


def compute_slot_positions(
    width: float,
    height: float,
    slot_count: int,
    geometry: PlacementGeometry = PlacementGeometry(),
) -> list[Point]:
    """Centre point of every slot for a surface of the given size.

    Primary slots follow the row template centred in the left share of the
    surface; secondary slots sit in a right-hand column.
    """
    if width <= 0 or height <= 0:
        return []

    positions: list[Point] = []
    left_width = width * geometry.primary_width_share
    left_x = geometry.margin
    top_y = geometry.margin

    for row, columns in enumerate(geometry.row_template):
        row_y = top_y + row * geometry.spacing_y
        row_span = (columns - 1) * geometry.spacing_x
        start_x = left_x + (left_width - row_span) / 2
        for column in range(columns):
            if len(positions) >= min(geometry.primary_slots, slot_count):
                break
            positions.append((start_x + column * geometry.spacing_x, row_y))

    right_x = left_width + geometry.margin * 2
    for row in geometry.secondary_rows:
        if len(positions) >= slot_count:
            break
        positions.append((right_x, top_y + row * geometry.spacing_y))

    while len(positions) < slot_count:
        positions.append((left_x, top_y))
    return positions


def nearest_slot(point: Point, positions: list[Point]) -> int | None:
    best: int | None = None
    best_distance = float("inf")
    for index, (slot_x, slot_y) in enumerate(positions):
        dx = slot_x - point[0]
        dy = slot_y - point[1]
        distance = dx * dx + dy * dy
        if distance < best_distance:
            best_distance = distance
            best = index
    return best


@dataclass(slots=True)
class DropResult:
    device_id: int
    from_slot: int
    to_slot: int
    swapped_with: int | None
    moved: bool


class DragController:
    """Press-move-release placement of device icons with nearest-slot snapping."""

    def __init__(self, layout: SlotLayout, geometry: PlacementGeometry = PlacementGeometry()) -> None:
        self.layout = layout
        self.geometry = geometry
        self.width = 0.0
        self.height = 0.0
        self.slot_positions: list[Point] = []
        self.dragging_device_id: int | None = None
        self._grab_offset: Point = (0.0, 0.0)
        self._transient: Point = (0.0, 0.0)

    @property
    def is_dragging(self) -> bool:
        return self.dragging_device_id is not None

    def resize(self, width: float, height: float) -> None:
        self.width, self.height = width, height
        self.slot_positions = compute_slot_positions(width, height, self.layout.slot_count, self.geometry)

    def position_for(self, device_id: int) -> Point:
        if device_id == self.dragging_device_id:
            return self._transient
        slot = self.layout.slot_for(device_id)
        if not self.slot_positions:
            return (self.geometry.margin + self.geometry.icon_size, self.geometry.margin + self.geometry.icon_size)
        if slot is None:
            return self.slot_positions[0]
        return self.slot_positions[slot % len(self.slot_positions)]

    def device_at_point(self, point: Point) -> int | None:
        half = self.geometry.icon_size / 2
        for device_id in self.layout.device_ids:
            centre_x, centre_y = self.position_for(device_id)
            if abs(point[0] - centre_x) <= half and abs(point[1] - centre_y) <= half:
                return device_id
        return None

    def begin_drag(self, point: Point) -> int | None:
        if not self.slot_positions:
            return None
        device_id = self.device_at_point(point)
        if device_id is None:
            return None
        centre = self.position_for(device_id)
        self.dragging_device_id = device_id
        self._grab_offset = (point[0] - centre[0], point[1] - centre[1])
        self._transient = centre
        return device_id

    def update_drag(self, point: Point) -> Point | None:
        if self.dragging_device_id is None:
            return None
        inset = self.geometry.margin + self.geometry.icon_size / 2
        x = point[0] - self._grab_offset[0]
        y = point[1] - self._grab_offset[1]
        # Clamp max before min so a surface smaller than the margins pins to the top-left.
        x = max(inset, min(x, self.width - inset))
        y = max(inset, min(y, self.height - inset))
        self._transient = (x, y)
        return self._transient

    def end_drag(self) -> DropResult | None:
        device_id = self.dragging_device_id
        drop_point = self._transient
        self.cancel_drag()
        if device_id is None:
            return None

        target_slot = nearest_slot(drop_point, self.slot_positions)
        current_slot = self.layout.slot_for(device_id)
        if target_slot is None or current_slot is None:
            return None
        other_id = self.layout.device_at(target_slot) if target_slot != current_slot else None
        moved = self.layout.move_device(device_id, target_slot)
        return DropResult(device_id, current_slot, target_slot, other_id, moved)

    def cancel_drag(self) -> None:
        self.dragging_device_id = None
        self._grab_offset = (0.0, 0.0)
