from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .core.domain import SerialConfig


class SerialSettingsIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    port: str = Field(..., min_length=1)
    baud_rate: int = Field(default=9600, gt=0, alias="baudRate")

    def to_config(self) -> SerialConfig:
        return SerialConfig(port=self.port, baud_rate=self.baud_rate)


class SimSampleOut(BaseModel):
    time: float
    data: dict = Field(default_factory=dict)


class SimAck(BaseModel):
    status: str = "ok"


class SimHistoryOut(BaseModel):
    status: str = "ok"
    samples: List[SimSampleOut] = Field(default_factory=list)


class SimLatestOut(BaseModel):
    status: str = "ok"
    sample: Optional[SimSampleOut] = None


class SimFieldsOut(BaseModel):
    status: str = "ok"
    fields: List[str] = Field(default_factory=list)


class SimStatusOut(BaseModel):
    status: str = "ok"
    mode: str
    count: int
    received: int
    fields: int
