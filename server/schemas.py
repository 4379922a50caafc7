from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from monopoly_core.state import NewPlayer


class PlayerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_id: str = Field(alias="id", min_length=1, max_length=128)
    name: str = Field(min_length=1, max_length=255)
    color: Optional[str] = None
    avatar: Optional[str] = None

    def to_new_player(self) -> NewPlayer:
        return NewPlayer(self.player_id, self.name, self.color, self.avatar)


class CreateGameRequest(BaseModel):
    players: List[PlayerRequest] = Field(min_length=1, max_length=8)
    game_id: Optional[str] = Field(default=None, min_length=1, max_length=128)


class CreateGameResponse(BaseModel):
    game_id: str


class GameListResponse(BaseModel):
    games: List[str]


class ActionRequest(BaseModel):
    """Wire action; validated further by the engine."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    player_id: str = Field(alias="playerId")
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.type, "playerId": self.player_id, "data": self.data, "timestamp": self.timestamp}


class LegalActionsResponse(BaseModel):
    game_id: str
    player_id: str
    actions: List[str]


class SpectatorRequest(BaseModel):
    spectator_id: str = Field(min_length=1, max_length=128)


class ErrorResponse(BaseModel):
    error: str
    detail: str
