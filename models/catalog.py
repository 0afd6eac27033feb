"""
Lookup tables read by the configuration provider.

- background_styles: the enhancement styles offered to the mobile client
- app_config: runtime key/value overrides for values in config/settings.py
"""

from datetime import datetime

from sqlalchemy import String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class BackgroundStyle(Base):
    __tablename__ = "background_styles"

    name: Mapped[str] = mapped_column(String(100), primary_key=True)


class AppConfig(Base):
    __tablename__ = "app_config"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
