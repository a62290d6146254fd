"""
Site settings schemas
"""

from typing import Any, Optional

from wellness.schemas.base import CamelModel, SuccessResponse


class AppointmentSettings(CamelModel):
    require_confirmation: bool


class AppointmentSettingsUpdate(CamelModel):
    # checked by the route so that a non-boolean is a 400, not a validation error
    require_confirmation: Optional[Any] = None


class AppointmentSettingsData(CamelModel):
    settings: AppointmentSettings


class AppointmentSettingsResponse(SuccessResponse):
    data: AppointmentSettingsData
