from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class ServiceStatus(BaseModel):
    service: str
    status: Literal["ok"] = "ok"
    time: str


class SlowResult(BaseModel):
    slow_ms: int
