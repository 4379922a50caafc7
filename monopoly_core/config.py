"""
Game configuration settings.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GameConfig(BaseModel):
    """
    Rule parameters for a Monopoly game.

    Built once at process start and handed to the engine and service by
    reference. Instances are immutable.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    starting_cash: int = Field(default=1500, ge=0)
    go_salary: int = Field(default=200, ge=0)
    board_size: int = Field(default=40, ge=1)
    jail_position: int = Field(default=10, ge=0)
    max_players: int = Field(default=8, ge=2, le=8)
    min_players: int = Field(default=2, ge=1)

    max_consecutive_doubles: int = Field(default=3, ge=1)
    max_jail_turns: int = Field(default=3, ge=1)
    jail_fee: int = Field(default=50, ge=0)

    auction_enabled: bool = False
    free_parking_pool: bool = False
    free_parking_starting_amount: int = Field(default=0, ge=0)

    # When off, landing on an owned space leaves rent pending for PAY_RENT
    auto_pay_rent: bool = True

    @model_validator(mode="after")
    def check_positions(self) -> "GameConfig":
        if self.jail_position >= self.board_size:
            raise ValueError("jail_position must lie on the board")
        if self.min_players > self.max_players:
            raise ValueError("min_players cannot exceed max_players")
        return self
