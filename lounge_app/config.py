from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


DEFAULT_SLOT_ORDER: tuple[int, ...] = (16, 15, 14, 11, 12, 13, 10, 9, 8, 7, 6, 5, 1, 2, 3, 4, 17, 18)


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    data_dir: str = "log"
    session_file_name: str = "active_users.json"
    layout_file_name: str = "device_layout.json"
    operations_log_name: str = "lounge-operations.log"
    member_file: str = "membership.csv"
    workstation_count: int = 16
    console_count: int = 2
    default_slot_order: tuple[int, ...] = DEFAULT_SLOT_ORDER
    refresh_poll_interval_ms: int = 250
    day_rollover_check_ms: int = 5 * 60 * 1000

    @property
    def session_file(self) -> Path:
        return Path(self.data_dir) / self.session_file_name

    @property
    def operations_log(self) -> Path:
        return Path(self.data_dir) / self.operations_log_name

    @property
    def layout_file(self) -> Path:
        return Path(self.data_dir) / self.layout_file_name

