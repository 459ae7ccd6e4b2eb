from __future__ import annotations

import queue


class RefreshSignal:
    """Single-slot "re-render now" channel.

    Signals are not counted: posting while one is still pending drops the new
    one, so consumers must re-read full state on every drain.
    """

    def __init__(self) -> None:
        self._slot: queue.Queue[bool] = queue.Queue(maxsize=1)

    def post(self) -> bool:
        try:
            self._slot.put_nowait(True)
        except queue.Full:
            return False
        return True

    def drain(self) -> bool:
        try:
            self._slot.get_nowait()
        except queue.Empty:
            return False
        return True

    @property
    def pending(self) -> bool:
        return not self._slot.empty()
