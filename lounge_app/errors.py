from __future__ import annotations


class LoungeError(Exception):
    """Base class for every precondition failure raised by the lounge core."""


class InvalidCheckIn(LoungeError):
    def __init__(self, name: str, identity: str) -> None:
        super().__init__("name and ID are required")
        self.name = name
        self.identity = identity


class DuplicateSession(LoungeError):
    def __init__(self, identity: str, name: str, device_id: int) -> None:
        where = "the queue" if device_id == 0 else f"device {device_id}"
        super().__init__(f"user ID {identity} ({name}) already checked in on {where}")
        self.identity = identity
        self.name = name
        self.device_id = device_id


class SessionNotFound(LoungeError):
    def __init__(self, identity: str) -> None:
        super().__init__(f"user ID {identity} not found")
        self.identity = identity


class SessionNotQueued(LoungeError):
    def __init__(self, identity: str, device_id: int) -> None:
        super().__init__(f"user {identity} is assigned to device {device_id}; check out instead")
        self.identity = identity
        self.device_id = device_id


class SessionQueued(LoungeError):
    def __init__(self, identity: str) -> None:
        super().__init__(f"user {identity} is in queue, use assign instead")
        self.identity = identity


class AlreadyAssigned(LoungeError):
    def __init__(self, identity: str, device_id: int) -> None:
        super().__init__(f"user {identity} already on device {device_id}")
        self.identity = identity
        self.device_id = device_id


class DeviceNotFound(LoungeError):
    def __init__(self, device_id: int) -> None:
        super().__init__(f"device ID {device_id} does not exist")
        self.device_id = device_id


class DeviceBusy(LoungeError):
    def __init__(self, device_id: int, occupied_by: str | None) -> None:
        super().__init__(f"device {device_id} is busy (occupied by UserID: {occupied_by or 'unknown'})")
        self.device_id = device_id
        self.occupied_by = occupied_by


class SameDevice(LoungeError):
    def __init__(self, identity: str, device_id: int) -> None:
        super().__init__(f"user {identity} is already on device {device_id}")
        self.identity = identity
        self.device_id = device_id


class SwitchAndRollbackFailed(LoungeError):
    """Both the forward check-in and the compensating check-in failed.

    The session may now exist nowhere; an operator has to reconcile by hand.
    """

    def __init__(
        self,
        identity: str,
        from_device_id: int,
        to_device_id: int,
        forward_error: Exception,
        rollback_error: Exception,
    ) -> None:
        super().__init__(
            f"switch of {identity} from device {from_device_id} to {to_device_id} failed and rollback failed - "
            f"user may be in inconsistent state: original error: {forward_error}, rollback error: {rollback_error}"
        )
        self.identity = identity
        self.from_device_id = from_device_id
        self.to_device_id = to_device_id
        self.forward_error = forward_error
        self.rollback_error = rollback_error


class SlotOutOfRange(LoungeError):
    def __init__(self, slot: int, slot_count: int) -> None:
        super().__init__(f"slot {slot} outside 0..{slot_count - 1}")
        self.slot = slot
        self.slot_count = slot_count


class LogStoreError(Exception):
    """Daily log file could not be read or written."""


class MemberDirectoryError(Exception):
    """Member directory file could not be written."""
