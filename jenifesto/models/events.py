from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    PAGE_UPDATED = "page_updated"
    PRIMARY_ENTITY_LOADED = "primary_entity_loaded"
    SECONDARY_LOADING = "secondary_loading"
    SECONDARY_LOADED = "secondary_loaded"
    LOAD_ERROR = "load_error"


@dataclass
class SSEEvent:
    event: EventType
    data: dict[str, Any] = field(default_factory=dict)

    def format(self) -> str:
        return f"event: {self.event.value}\ndata: {json.dumps(self.data)}\n\n"
