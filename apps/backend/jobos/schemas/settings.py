"""Settings and data-export schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Theme = Literal["light", "dark", "system"]


class SettingsUpdate(BaseModel):
    """Schema for updating settings (all fields optional).

    An empty string for the API key clears it.
    """

    openrouter_api_key: str | None = Field(None, max_length=512)
    theme: Theme | None = None


class SettingsResponse(BaseModel):
    """Schema for settings response. The API key itself is never echoed."""

    id: int
    theme: Theme
    has_api_key: bool
    updated_at: datetime

    @classmethod
    def from_orm_model(cls, row):
        """Create response from ORM model.

        Args:
            row: AppSettings ORM instance

        Returns:
            SettingsResponse instance
        """
        return cls(
            id=row.id,
            theme=row.theme,
            has_api_key=bool(row.openrouter_api_key),
            updated_at=row.updated_at,
        )


class ExportDocument(BaseModel):
    """Backup document produced by the export endpoint."""

    jobs: list[dict[str, Any]]
    profiles: list[dict[str, Any]]
    settings: list[dict[str, Any]]
    exportedAt: str
    version: str


class ClearDataResponse(BaseModel):
    """Result of the delete-all-data operation."""

    message: str
    settings: SettingsResponse
