"""Process-wide application settings."""

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class AppSettings(BaseModel):
    """
    User-facing display and refresh settings.

    Persisted under the ``appSettings`` key with camelCase names
    (``showAwards``, ``refreshIntervalMs``). Field names work as input too.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    theme: Theme = Theme.LIGHT
    show_awards: bool = Field(default=True, alias="showAwards")
    show_thumbnails: bool = Field(default=True, alias="showThumbnails")
    compact_mode: bool = Field(default=False, alias="compactMode")
    auto_refresh: bool = Field(default=False, alias="autoRefresh")
    refresh_interval_ms: int = Field(
        default=300_000,  # 5 minutes
        gt=0,
        validation_alias=AliasChoices("refreshIntervalMs", "refreshInterval", "refresh_interval_ms"),
        serialization_alias="refreshIntervalMs",
    )

    def to_blob(self) -> dict:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True)
