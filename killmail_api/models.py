"""
Killmail Models

This module defines the pydantic models for killmail documents as stored in
the ``killmails`` collection and as returned by the API.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _zero_as_missing(value: Any) -> Any:
    # Stored documents omit these fields rather than storing zero
    return None if value == 0 else value


class ESIPosition(BaseModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class ESIItem(BaseModel):
    flag: int = 0
    item_type_id: int = 0
    quantity_dropped: Optional[int] = None
    quantity_destroyed: Optional[int] = None
    singleton: int = 0

    @field_validator("quantity_dropped", "quantity_destroyed", mode="before")
    @classmethod
    def normalize_quantities(cls, value):
        return _zero_as_missing(value)


class ESIAttacker(BaseModel):
    alliance_id: Optional[int] = None
    corporation_id: int = 0
    character_id: int = 0
    damage_done: int = 0
    final_blow: bool = False
    security_status: float = 0.0
    ship_type_id: int = 0
    weapon_type_id: int = 0

    @field_validator("alliance_id", mode="before")
    @classmethod
    def normalize_alliance(cls, value):
        return _zero_as_missing(value)


class ESIVictim(BaseModel):
    alliance_id: Optional[int] = None
    corporation_id: int = 0
    character_id: int = 0
    damage_taken: int = 0
    items: List[ESIItem] = Field(default_factory=list)
    position: ESIPosition = Field(default_factory=ESIPosition)
    ship_type_id: int = 0

    @field_validator("alliance_id", mode="before")
    @classmethod
    def normalize_alliance(cls, value):
        return _zero_as_missing(value)


class ESIKillmail(BaseModel):
    """The killmail as published by ESI."""

    attackers: List[ESIAttacker] = Field(default_factory=list)
    killmail_id: int = 0
    killmail_time: datetime
    solar_system_id: int = 0
    victim: ESIVictim


class FittingAttributes(BaseModel):
    """Derived fitting attributes computed by the post-processor."""

    ship: Optional[Dict[str, float]] = None
    drones: Optional[List[Dict[str, float]]] = None

    @field_validator("ship", "drones", mode="before")
    @classmethod
    def empty_as_missing(cls, value):
        return value or None


class KillmailData(BaseModel):
    """
    A killmail document.

    ``axiom`` is only present once the post-processor has run; such
    killmails are the only ones eligible for bulk listing.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(alias="_id")
    killmail: ESIKillmail
    axiom: Optional[FittingAttributes] = None

    def to_json(self) -> Dict[str, Any]:
        """Serialize for a response body, omitting absent optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
