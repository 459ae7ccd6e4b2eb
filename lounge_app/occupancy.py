from __future__ import annotations

from dataclasses import dataclass

from lounge_app.models import Device, Session


@dataclass(slots=True)
class OccupancySummary:
    total_devices: int
    workstations_free: int
    workstations_occupied: int
    consoles_occupied: int
    active_sessions: int
    queued_sessions: int

    def status_line(self) -> str:
        return (
            f"Total Devices: {self.total_devices} | Active Users: {self.active_sessions} | "
            f"Queued: {self.queued_sessions} | Free PCs: {self.workstations_free}"
        )


def summarize_occupancy(devices: list[Device], sessions: list[Session]) -> OccupancySummary:
    workstations = [device for device in devices if not device.is_console]
    consoles = [device for device in devices if device.is_console]
    return OccupancySummary(
        total_devices=len(devices),
        workstations_free=sum(1 for device in workstations if device.status == "free"),
        workstations_occupied=sum(1 for device in workstations if device.status == "occupied"),
        consoles_occupied=sum(1 for device in consoles if device.status == "occupied"),
        active_sessions=len(sessions),
        queued_sessions=sum(1 for session in sessions if session.is_queued),
    )
