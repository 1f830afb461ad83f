"""AppSettings model: single-row configuration table.

Exactly one row is expected. Access goes through
``jobos.services.settings_store`` which creates the row lazily and removes
any extras.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow

DEFAULT_THEME = "system"


class AppSettings(Base):
    """Process-wide settings (API key, theme)."""

    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    openrouter_api_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    theme: Mapped[str] = mapped_column(String(10), nullable=False, default=DEFAULT_THEME)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AppSettings(id={self.id}, theme='{self.theme}', has_api_key={bool(self.openrouter_api_key)})>"
