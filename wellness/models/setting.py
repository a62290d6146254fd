"""Site-wide key/value settings"""

from sqlalchemy import Column, String, JSON

from .base import BaseModel, TimestampedModel


class SiteSetting(BaseModel, TimestampedModel):
    __tablename__ = "site_settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)
