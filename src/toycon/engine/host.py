"""Host-supplied state consumed by nodes during a tick."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


class HostInput(BaseModel):
    """Snapshot of pointer, button and keyboard state for one tick."""

    model_config = ConfigDict(extra="forbid")

    pointer_x: float = 0.0
    pointer_y: float = 0.0
    viewport_width: float = Field(default=0.0, ge=0.0)
    viewport_height: float = Field(default=0.0, ge=0.0)
    buttons: dict[int, bool] = Field(default_factory=dict)
    keys: set[str] = Field(default_factory=set)

    def button_pressed(self, node_id: int) -> bool:
        return bool(self.buttons.get(node_id, False))

    def key_down(self, key: str) -> bool:
        return key.lower() in {k.lower() for k in self.keys}


@dataclass
class RuntimeContext:
    tick: int
    dt: float
    host: HostInput
    rng: np.random.Generator
