"""Action response models returned by the game API client."""

from typing import Any

from pydantic import BaseModel, Field

from artifactsfleet.models.character import CharacterState
from artifactsfleet.models.world import SimpleItem


class Cooldown(BaseModel):
    model_config = {"extra": "ignore"}

    total_seconds: float = 0
    remaining_seconds: float = 0
    expiration: str | None = None
    reason: str = ""


class ActionResult(BaseModel):
    """Updated character plus cooldown; `details` keeps the rest of the payload."""

    character: CharacterState
    cooldown: Cooldown = Field(default_factory=Cooldown)
    details: dict[str, Any] = Field(default_factory=dict)


class BankResult(ActionResult):
    bank: list[SimpleItem] = Field(default_factory=list)


class FightCharacterResult(BaseModel):
    model_config = {"extra": "ignore"}

    character_name: str
    xp: int = 0
    gold: int = 0
    drops: list[SimpleItem] = Field(default_factory=list)
    final_hp: int = 0


class FightResult(BaseModel):
    """A fight involves one or more characters (party fights)."""

    cooldown: Cooldown = Field(default_factory=Cooldown)
    result: str = "loss"
    turns: int = 0
    opponent: str = ""
    character_results: list[FightCharacterResult] = Field(default_factory=list)
    characters: list[CharacterState] = Field(default_factory=list)

    def character(self, name: str) -> CharacterState | None:
        return next((c for c in self.characters if c.name == name), None)


class SimulatedCharacterResult(BaseModel):
    model_config = {"extra": "ignore"}

    final_hp: int = 0


class SimulatedFight(BaseModel):
    model_config = {"extra": "ignore"}

    result: str
    turns: int = 0
    character_results: list[SimulatedCharacterResult] = Field(default_factory=list)


class SimulationResponse(BaseModel):
    results: list[SimulatedFight] = Field(default_factory=list)
