from __future__ import annotations

import sys
from pathlib import Path

from lounge_app.config import RuntimeConfig
from lounge_app.data_sources.daily_log import DailyLogStore
from lounge_app.data_sources.device_inventory import DeviceInventoryClient, build_device_table
from lounge_app.data_sources.member_directory import MemberDirectoryClient
from lounge_app.data_sources.session_store import SessionSnapshotStore
from lounge_app.device_placement import DragController
from lounge_app.errors import LoungeError
from lounge_app.logging_orchestrator import LoggingOrchestrator
from lounge_app.occupancy import summarize_occupancy
from lounge_app.refresh_signal import RefreshSignal
from lounge_app.session_engine import SessionEngine
from lounge_app.slot_layout import SlotLayout


def bootstrap_engine(config: RuntimeConfig) -> tuple[SessionEngine, DragController]:
    logger = LoggingOrchestrator(log_file=config.operations_log)
    Path(config.data_dir).mkdir(parents=True, exist_ok=True)

    members = MemberDirectoryClient(Path(config.member_file))
    members.load()
    inventory = DeviceInventoryClient(build_device_table(config.workstation_count, config.console_count))

    engine = SessionEngine(
        device_inventory=inventory,
        session_store=SessionSnapshotStore(config.session_file, logger),
        daily_log=DailyLogStore(Path(config.data_dir)),
        member_directory=members,
        refresh_signal=RefreshSignal(),
        logger=logger,
    )

    layout = SlotLayout(config.layout_file, inventory.device_ids(), config.default_slot_order, logger)
    layout.load()
    return engine, DragController(layout)


def run_cli_demo(config: RuntimeConfig) -> None:
    engine, _drag = bootstrap_engine(config)
    try:
        engine.check_in("Demo Player", "DEMO-1", 3)
        engine.check_in("Queued Player", "DEMO-2")
        engine.assign_queued_session("DEMO-2", 5)
        engine.switch_station("DEMO-1", 17)
        engine.check_out("DEMO-1")
        engine.check_out("DEMO-2")
    except LoungeError as exc:
        print(f"Demo stopped: {exc}")
    finally:
        engine.close()
    summary = summarize_occupancy(engine.devices(), engine.sessions())
    print(f"{summary.status_line()} | log entries today: {len(engine.today_log())}")


if __name__ == "__main__":
    runtime_config = RuntimeConfig()
    if "--cli" in sys.argv:
        run_cli_demo(runtime_config)
    else:
        from lounge_app.gui_orchestrator import GUIOrchestrator

        lounge_engine, drag_controller = bootstrap_engine(runtime_config)
        gui = GUIOrchestrator(lounge_engine, drag_controller, runtime_config)
        gui.run()
