"""Exceptions raised by the dispenser core."""


class DispenserError(Exception):
    """Base class for dispenser errors."""


class StorageCorruptError(DispenserError):
    """Persisted level payload is malformed or carries a stale version tag."""


class InvalidLevelsError(DispenserError):
    """Bulk level input was empty or not a list of level records."""


class PersistenceError(DispenserError):
    """The durable write failed."""


class ActuationError(DispenserError):
    """A pump did not run."""

    def __init__(self, pump_id: int, message: str = "actuation failed"):
        self.pump_id = pump_id
        super().__init__(f"Pump {pump_id}: {message}")


class VentingBusyError(DispenserError):
    """Automatic venting is in progress."""
