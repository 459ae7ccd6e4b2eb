from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

from lounge_app.data_sources.json_files import write_json_atomic
from lounge_app.errors import DeviceNotFound, SlotOutOfRange
from lounge_app.logging_orchestrator import LoggingOrchestrator


class SlotLayout:
    """Persisted device -> slot placement, independent of occupancy.

    Once every device is placed the mapping is a bijection onto
    ``0..len(device_ids) - 1``.
    """

    def __init__(
        self,
        path: Path,
        device_ids: Iterable[int],
        preferred_order: Iterable[int],
        logger: LoggingOrchestrator,
    ) -> None:
        self.path = Path(path)
        self.device_ids = sorted(device_ids)
        self.preferred_order = tuple(preferred_order)
        self.logger = logger
        self._slots: dict[int, int] = {}

    @property
    def slot_count(self) -> int:
        return len(self.device_ids)

    def load(self) -> None:
        entries = self._read_entries()
        if entries is None:
            self._slots = {}
            self.reconcile(self.device_ids, force_save=True)
            return

        known = set(self.device_ids)
        taken: set[int] = set()
        self._slots = {}
        for device_id, slot in entries:
            if device_id not in known or device_id in self._slots:
                continue
            if slot in taken or not 0 <= slot < self.slot_count:
                continue
            self._slots[device_id] = slot
            taken.add(slot)
        dropped = len(entries) - len(self._slots)
        if dropped:
            self.logger.warning(f"Dropped {dropped} stale or conflicting slot entr(ies) from {self.path}.")
        self.reconcile(self.device_ids, force_save=bool(dropped))

    def _read_entries(self) -> list[tuple[int, int]] | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError:
            return None
        if not raw.strip():
            return None
        try:
            return [(int(item["device_id"]), int(item["slot"])) for item in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as exc:
            self.logger.warning(f"Slot layout {self.path} unparseable, rebuilding defaults: {exc}")
            return None

    def reconcile(self, device_ids: Iterable[int], force_save: bool = False) -> bool:
        """Place every unplaced device in the lowest free slot, in preference order."""
        self.device_ids = sorted(device_ids)
        current = set(self.device_ids)
        changed = False
        stale = [
            device_id
            for device_id, slot in self._slots.items()
            if device_id not in current or slot >= self.slot_count
        ]
        for device_id in stale:
            del self._slots[device_id]
            changed = True

        ranked = [device_id for device_id in self.preferred_order if device_id in current]
        ranked += [device_id for device_id in self.device_ids if device_id not in ranked]

        taken = set(self._slots.values())
        next_slot = 0
        for device_id in ranked:
            if device_id in self._slots:
                continue
            while next_slot in taken:
                next_slot += 1
            self._slots[device_id] = next_slot
            taken.add(next_slot)
            changed = True

        if changed or force_save:
            self.save()
        return changed

    def slot_for(self, device_id: int) -> int | None:
        return self._slots.get(device_id)

    def device_at(self, slot: int) -> int | None:
        for device_id, owned in self._slots.items():
            if owned == slot:
                return device_id
        return None

    def as_dict(self) -> dict[int, int]:
        return dict(self._slots)

    def move_device(self, device_id: int, target_slot: int) -> bool:
        """Move a device to a slot, swapping with the current owner; False when nothing changed."""
        if device_id not in self._slots:
            raise DeviceNotFound(device_id)
        if not 0 <= target_slot < self.slot_count:
            raise SlotOutOfRange(target_slot, self.slot_count)

        current_slot = self._slots[device_id]
        if current_slot == target_slot:
            return False

        other_id = self.device_at(target_slot)
        self._slots[device_id] = target_slot
        if other_id is not None:
            self._slots[other_id] = current_slot
        self.save()
        self.logger.info(
            f"Device {device_id} moved to slot {target_slot}"
            + (f"; device {other_id} swapped to slot {current_slot}." if other_id is not None else ".")
        )
        return True

    def save(self) -> None:
        entries = [
            {"device_id": device_id, "slot": slot}
            for device_id, slot in sorted(self._slots.items())
        ]
        write_json_atomic(self.path, entries)
