from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, conint, field_validator

from badgeledger.core.achievements import GameResult
from badgeledger.core.address import normalize_address
from badgeledger.core.player_registry import SQLITE_INTEGER_MAX
from badgeledger.core.typed_signing import UINT256_MAX

StoredInt = conint(ge=0, le=SQLITE_INTEGER_MAX)


class _CamelInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("player_address", check_fields=False)
    @classmethod
    def normalize_player(cls, value: str) -> str:
        return normalize_address(value)


class GameSubmitInput(_CamelInput):
    player_address: str = Field(alias="playerAddress")
    score: StoredInt
    lines_cleared: StoredInt = Field(default=0, alias="linesCleared")
    duration: StoredInt | None = None
    is_tournament: bool = Field(default=False, alias="isTournament")
    tournament_id: StoredInt | None = Field(default=None, alias="tournamentId")

    def to_game_result(self) -> GameResult:
        return GameResult(
            player=self.player_address,
            score=self.score,
            lines_cleared=self.lines_cleared,
            duration=self.duration,
            is_tournament=self.is_tournament,
            tournament_id=self.tournament_id,
        )


class SignatureRequestInput(_CamelInput):
    player_address: str = Field(alias="playerAddress")
    # Ids outside the catalog are never earned and are refused as unearned
    achievement_id: conint(ge=0, le=UINT256_MAX) = Field(alias="achievementId")
