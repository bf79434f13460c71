"""Fish server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from fish.logic.settings import MAX_PLAYERS, MIN_PLAYERS, GameSettings
from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class FishServerSettings(BaseSettings):
    model_config = {"env_prefix": "FISH_"}

    max_rooms: int = Field(default=500, ge=1)
    log_dir: str = Field(default="backend/logs/fish", min_length=1)
    cors_origins: list[str] = ["http://localhost:5173"]
    reconnect_grace_seconds: float = Field(default=60, gt=0)

    min_players: int = Field(default=MIN_PLAYERS, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    max_players: int = Field(default=MAX_PLAYERS, ge=MIN_PLAYERS, le=MAX_PLAYERS)
    deal_remainder: bool = False

    # 20 frames/sec sustained is far above human play, the burst covers
    # a client replaying its queue after a network hiccup.
    rate_limit_per_second: float = Field(default=20.0, gt=0)
    rate_limit_burst: int = Field(default=40, ge=1)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    def game_settings(self) -> GameSettings:
        return GameSettings(
            min_players=self.min_players,
            max_players=self.max_players,
            deal_remainder=self.deal_remainder,
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
