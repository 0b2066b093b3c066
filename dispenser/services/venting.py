"""
Venting Orchestrator

Purges air from the tubing by running pumps without dispensing a drink.

Automatic venting runs every enabled pump one after another; a pump that
fails is logged and skipped. Manual venting runs a single pump and is
refused while an automatic run is active. Reset marks the run as cancelled;
a pump already running finishes before the loop notices.
"""

import asyncio
import logging
import math
from typing import Callable, List, Sequence, Set

from dispenser.errors import VentingBusyError
from dispenser.models.common import VentingStatus
from dispenser.models.recipes import PumpConfig
from dispenser.models.venting import VentingState
from dispenser.services.actuation import PumpActuator

logger = logging.getLogger(__name__)

AUTO_VENT_DURATION_MS = 2000
MANUAL_VENT_DURATION_MS = 1000

VentingListener = Callable[[VentingState], None]


# ============================================================================
# Transitions
# ============================================================================

def start_run(state: VentingState, pump_ids: Sequence[int]) -> VentingState:
    """Idle -> Venting over the given pumps."""
    return state.model_copy(update={
        "status": VentingStatus.VENTING,
        "progress": 0,
        "current_pump": None,
        "pumps": list(pump_ids),
        "pumps_done": [],
        "run_id": state.run_id + 1,
    })


def begin_pump(state: VentingState, pump_id: int) -> VentingState:
    return state.model_copy(update={"current_pump": pump_id})


def complete_pump(state: VentingState, pump_id: int) -> VentingState:
    """Mark a pump as done, whatever its outcome, and recompute progress."""
    done = state.pumps_done + [pump_id]
    total = len(state.pumps)
    progress = math.floor(len(done) / total * 100 + 0.5) if total else 100
    return state.model_copy(update={"pumps_done": done, "progress": min(progress, 100)})


def finish_run(state: VentingState) -> VentingState:
    """Venting -> Idle after the last pump. Progress and done list stay visible."""
    return state.model_copy(update={"status": VentingStatus.IDLE, "current_pump": None})


def reset_state(state: VentingState) -> VentingState:
    """Force Idle and clear the run."""
    return state.model_copy(update={
        "status": VentingStatus.IDLE,
        "progress": 0,
        "current_pump": None,
        "pumps": [],
        "pumps_done": [],
    })


# ============================================================================
# Orchestrator
# ============================================================================

class VentingOrchestrator:
    """Drives a PumpActuator through automatic and manual venting."""

    def __init__(
        self,
        actuator: PumpActuator,
        auto_duration_ms: int = AUTO_VENT_DURATION_MS,
        manual_duration_ms: int = MANUAL_VENT_DURATION_MS,
    ):
        self.actuator = actuator
        self.auto_duration_ms = auto_duration_ms
        self.manual_duration_ms = manual_duration_ms

        self._state = VentingState()
        self._manual: Set[int] = set()
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[VentingListener] = []

    @property
    def state(self) -> VentingState:
        return self._state.model_copy(update={"manual_venting": sorted(self._manual)})

    def subscribe(self, listener: VentingListener) -> Callable[[], None]:
        """Call `listener` with a fresh snapshot after every state change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Automatic venting
    # =========================================================================

    async def start_auto(self, pump_config: Sequence[PumpConfig]) -> VentingState:
        """Vent every enabled pump in configuration order and wait for the run."""
        run_id = self._begin(pump_config)
        await self._run(run_id)
        return self.state

    def run_auto(self, pump_config: Sequence[PumpConfig]) -> VentingState:
        """Start automatic venting as a background task on the running loop."""
        loop = asyncio.get_running_loop()
        run_id = self._begin(pump_config)
        task = loop.create_task(self._run(run_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return self.state

    async def wait(self) -> None:
        """Wait for every background run started by run_auto(), including reset ones."""
        while self._tasks:
            await asyncio.gather(*self._tasks)

    def reset(self) -> VentingState:
        """Cancel the automatic run. A pump already running is not interrupted."""
        if self._state.is_venting:
            logger.info(f"Venting run {self._state.run_id} reset at {self._state.progress}%")
        self._set_state(reset_state(self._state))
        return self.state

    def _begin(self, pump_config: Sequence[PumpConfig]) -> int:
        if self._state.is_venting:
            raise VentingBusyError("Automatic venting already running")

        pump_ids = [pump.id for pump in pump_config if pump.enabled]
        self._set_state(start_run(self._state, pump_ids))
        logger.info(f"Starting automatic venting of {len(pump_ids)} pumps: {pump_ids}")
        return self._state.run_id

    def _is_current(self, run_id: int) -> bool:
        return self._state.is_venting and self._state.run_id == run_id

    async def _run(self, run_id: int) -> None:
        for pump_id in list(self._state.pumps):
            if not self._is_current(run_id):
                logger.info(f"Venting run {run_id} stopped before pump {pump_id}")
                return

            self._set_state(begin_pump(self._state, pump_id))
            await self._actuate(pump_id, self.auto_duration_ms)

            if not self._is_current(run_id):
                logger.info(f"Venting run {run_id} stopped after pump {pump_id}")
                return
            self._set_state(complete_pump(self._state, pump_id))

        if self._is_current(run_id):
            self._set_state(finish_run(self._state))
            logger.info(f"Automatic venting finished: {len(self._state.pumps_done)} pumps")

    # =========================================================================
    # Manual venting
    # =========================================================================

    async def vent_pump(self, pump_id: int) -> bool:
        """
        Vent a single pump. Returns whether the actuation succeeded.

        Different pumps may be vented concurrently. Venting the same pump
        twice at once is not prevented.
        """
        if self._state.is_venting:
            raise VentingBusyError("Manual venting is disabled during automatic venting")

        self._manual.add(pump_id)
        self._notify()
        try:
            return await self._actuate(pump_id, self.manual_duration_ms)
        finally:
            self._manual.discard(pump_id)
            self._notify()

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _actuate(self, pump_id: int, duration_ms: int) -> bool:
        try:
            ok = await self.actuator.actuate(pump_id, duration_ms)
        except Exception as e:
            logger.error(f"Error venting pump {pump_id}: {e}")
            return False

        if not ok:
            logger.error(f"Error venting pump {pump_id}: actuator reported failure")
        return bool(ok)

    def _set_state(self, state: VentingState) -> None:
        self._state = state
        self._notify()

    def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Venting listener failed")
