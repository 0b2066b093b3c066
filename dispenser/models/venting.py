"""Venting state."""

from typing import List, Optional

from pydantic import BaseModel, Field

from dispenser.models.common import VentingStatus


class VentingState(BaseModel):
    """
    Snapshot of the venting rig.

    `pumps` is the enabled-pump list captured when the automatic run started;
    `manual_venting` lists pumps currently in a manual single-pump vent.
    """

    status: VentingStatus = VentingStatus.IDLE
    progress: int = Field(default=0, ge=0, le=100)
    current_pump: Optional[int] = None
    pumps: List[int] = Field(default_factory=list)
    pumps_done: List[int] = Field(default_factory=list)
    run_id: int = 0
    manual_venting: List[int] = Field(default_factory=list)

    @property
    def is_venting(self) -> bool:
        return self.status == VentingStatus.VENTING
