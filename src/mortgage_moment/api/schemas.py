# src/mortgage_moment/api/schemas.py
from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from mortgage_moment.domain.listing import CamelModel


# --------------------------------------------
# Affordability check
# --------------------------------------------

class CalculateAffordabilityRequest(CamelModel):
    """
    Body of POST /api/calculate-affordability.

    Keep this permissive: form values arrive as strings, numbers or blanks.
    """
    model_config = ConfigDict(extra="allow")

    income: Any = None
    equity: Any = None
    monthly_debts: Any = None
    property_price: Any = None


class CalculateAffordabilityResponse(CamelModel):
    is_affordable: bool
    max_affordable_price: float
    gap: float
    budget_details: dict[str, Any]
    message: str


# --------------------------------------------
# Email
# --------------------------------------------

class MessageResponse(CamelModel):
    model_config = ConfigDict(extra="allow")

    message: str
    data: Any = None


# --------------------------------------------
# Realtime voice
# --------------------------------------------

class RealtimeTokenRequest(CamelModel):
    model_config = ConfigDict(extra="allow")

    property_data: dict[str, Any] | None = Field(default=None, alias="property")
    user_profile: dict[str, Any] | None = None


class RealtimeTokenResponse(CamelModel):
    secret: str


class VoiceToolCallRequest(CamelModel):
    model_config = ConfigDict(extra="allow")

    name: str
    arguments: Any = None
    call_id: str = ""
    property_data: dict[str, Any] | None = Field(default=None, alias="property")
    user_profile: dict[str, Any] | None = None


class VoiceToolCallResponse(CamelModel):
    events: list[dict[str, Any]]
    user_profile: dict[str, Any]
