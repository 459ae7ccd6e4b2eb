from __future__ import annotations

from lounge_app.models import Device, Session


def build_device_table(workstation_count: int, console_count: int) -> list[Device]:
    devices = [Device(device_id, "workstation") for device_id in range(1, workstation_count + 1)]
    devices.extend(
        Device(workstation_count + offset, "console") for offset in range(1, console_count + 1)
    )
    return devices


class DeviceInventoryClient:
    def __init__(self, devices: list[Device]) -> None:
        self._devices = {device.device_id: device for device in devices}

    def get_device(self, device_id: int) -> Device | None:
        return self._devices.get(device_id)

    def all_devices(self) -> list[Device]:
        return list(self._devices.values())

    def device_ids(self) -> list[int]:
        return list(self._devices)

    def is_available(self, device: Device) -> bool:
        # Consoles are shared and never refuse another session.
        return device.is_console or device.status == "free"

    def mark_occupied(self, device_id: int, identity: str) -> None:
        device = self._devices[device_id]
        device.status = "occupied"
        if not device.is_console:
            device.occupied_by = identity

    def release(self, device_id: int, remaining_sessions: int) -> None:
        device = self._devices[device_id]
        if device.is_console:
            device.status = "occupied" if remaining_sessions else "free"
            return
        device.status = "free"
        device.occupied_by = None

    def reconcile(self, sessions: list[Session]) -> tuple[list[Session], list[Session]]:
        """Mark devices referenced by persisted sessions.

        Returns the sessions pointing at unknown devices and the sessions that
        would share a workstation already bound to an earlier session.
        """
        orphans: list[Session] = []
        conflicts: list[Session] = []
        for session in sessions:
            if session.is_queued:
                continue
            if session.device_id not in self._devices:
                orphans.append(session)
                continue
            device = self._devices[session.device_id]
            if not device.is_console and device.occupied_by is not None:
                conflicts.append(session)
                continue
            self.mark_occupied(session.device_id, session.identity)
        return orphans, conflicts
