from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional


class ViewportIn(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class ZoomIn(ViewportIn):
    x_range: List[float] = Field(min_length=2, max_length=2)
    y_range: List[float] = Field(min_length=2, max_length=2)

    @field_validator("x_range")
    @classmethod
    def validate_x_range(cls, v):
        if v[0] == v[1]:
            raise ValueError("x_range must not be empty")
        return v


class TooltipOut(BaseModel):
    title: str
    html: str
    visible: bool
    top: Optional[float] = None
    left: Optional[float] = None
    node_id: Optional[str] = None


class ViewOut(BaseModel):
    relayout: Dict[str, List[float]]
    scale: float
    tooltip: TooltipOut


class HoverOut(BaseModel):
    style: Dict[str, List[Any]]
    tooltip: TooltipOut


class FrameOut(BaseModel):
    frame: int
    simulation_complete: bool
    data: Dict[str, List[List[Optional[float]]]]
    tooltip: TooltipOut


class StatusOut(BaseModel):
    loaded: Dict[str, bool]
    hidden: List[str]
    alerts: List[str]
    rendered: bool
    simulation_complete: bool = False
