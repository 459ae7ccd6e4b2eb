from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


DeviceKind = Literal["workstation", "console"]
DeviceStatus = Literal["free", "occupied"]

QUEUE_DEVICE_ID = 0


@dataclass(slots=True)
class Device:
    device_id: int
    kind: DeviceKind
    status: DeviceStatus = "free"
    occupied_by: str | None = None

    @property
    def is_console(self) -> bool:
        return self.kind == "console"


@dataclass(slots=True)
class Session:
    identity: str
    name: str
    checked_in_at: datetime
    device_id: int = QUEUE_DEVICE_ID

    @property
    def is_queued(self) -> bool:
        return self.device_id == QUEUE_DEVICE_ID


@dataclass(slots=True)
class LogEntry:
    name: str
    identity: str
    device_id: int
    checked_in_at: datetime
    checked_out_at: datetime | None = None
    usage_time: str | None = None

    @property
    def is_open(self) -> bool:
        return self.checked_out_at is None


@dataclass(slots=True)
class Member:
    name: str
    identity: str


@dataclass(slots=True)
class CheckoutReceipt:
    session: Session
    checked_out_at: datetime
    usage_time: str
