"""
Pump Actuation

The core treats running a pump as an opaque async effect. Hosts plug in
whatever drives their hardware; SimulatedActuator stands in when there is
none attached.
"""

import asyncio
import logging
from typing import Protocol

from dispenser.errors import ActuationError

logger = logging.getLogger(__name__)


class PumpActuator(Protocol):
    """Runs one pump for a fixed time. Returns False or raises on failure."""

    async def actuate(self, pump_id: int, duration_ms: int) -> bool:
        ...


class SimulatedActuator:
    """Sleeps for the requested duration instead of driving a pump."""

    def __init__(self, time_scale: float = 1.0):
        self.time_scale = time_scale

    async def actuate(self, pump_id: int, duration_ms: int) -> bool:
        if duration_ms <= 0:
            raise ActuationError(pump_id, f"invalid duration {duration_ms}ms")

        logger.info(f"[simulated] Running pump {pump_id} for {duration_ms}ms")
        await asyncio.sleep(duration_ms / 1000 * self.time_scale)
        return True
