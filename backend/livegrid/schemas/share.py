from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CellData(BaseModel):
    url: str = ""
    # UI-only flag, never part of the state hash
    is_editing: bool = False

    model_config = ConfigDict(extra="ignore")


class GridState(BaseModel):
    rows: int = Field(ge=1)
    cols: int = Field(ge=1)
    # Keyed "{row}-{col}"
    cell_data: dict[str, CellData] = Field(default_factory=dict)


class GridShareRequest(BaseModel):
    grid_state: GridState


class MultiTrackShareRequest(BaseModel):
    urls: list[str]


class ShareResult(BaseModel):
    success: bool
    share_url: Optional[str] = None
    share_id: Optional[str] = None
    is_existing: Optional[bool] = None
    error: Optional[str] = None


class SharedGridRead(BaseModel):
    share_id: str
    rows: int
    cols: int
    cell_data: dict[str, CellData]
    state_hash: str
    type: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SharedMultiTrack(BaseModel):
    urls: list[str]
