"""Pump venting endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status

from api.dependencies import get_pump_config, get_venting_orchestrator
from api.middleware.errors import NotFoundError
from dispenser.models.levels import PUMP_COUNT
from dispenser.models.recipes import PumpConfig
from dispenser.services.venting import VentingOrchestrator

router = APIRouter()


@router.get("")
async def get_venting_state(
    orchestrator: VentingOrchestrator = Depends(get_venting_orchestrator),
):
    return orchestrator.state.model_dump(mode="json")


@router.post("/auto", status_code=status.HTTP_202_ACCEPTED)
async def start_auto_venting(
    orchestrator: VentingOrchestrator = Depends(get_venting_orchestrator),
    pump_config: List[PumpConfig] = Depends(get_pump_config),
):
    """Start venting all enabled pumps in the background. Poll GET for progress."""
    return orchestrator.run_auto(pump_config).model_dump(mode="json")


@router.post("/reset")
async def reset_venting(
    orchestrator: VentingOrchestrator = Depends(get_venting_orchestrator),
):
    return orchestrator.reset().model_dump(mode="json")


@router.post("/pumps/{pump_id}")
async def vent_single_pump(
    pump_id: int,
    orchestrator: VentingOrchestrator = Depends(get_venting_orchestrator),
):
    """Vent one pump briefly. Refused while automatic venting runs."""
    if not 1 <= pump_id <= PUMP_COUNT:
        raise NotFoundError("Pump", str(pump_id))

    success = await orchestrator.vent_pump(pump_id)
    return {"pump_id": pump_id, "success": success}
