"""Outbound analytics event schema.

Events are the only contract with the analytics backend: a name plus a flat
property map. Delivery is the backend's concern.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    COPY_VARIANT_VIEW = "copy_variant_view"
    AB_TEST_CONVERSION = "ab_test_conversion"


class Event(BaseModel):
    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    properties: dict[str, Any] = Field(default_factory=dict)
