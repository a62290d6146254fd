"""API v1 routes aggregation"""

from fastapi import APIRouter

from .appointments.router import router as appointments_router
from .bonus.router import router as bonus_router
from .promos.router import router as promos_router, admin_router as admin_promos_router
from .specialists.router import router as specialists_router
from .catalog.router import router as services_router
from .reviews.router import router as reviews_router
from .cron.router import router as cron_router
from .settings.router import router as settings_router

# Create v1 router
api_router = APIRouter()

# Include all routers
api_router.include_router(appointments_router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(bonus_router, prefix="/bonus", tags=["Bonus"])
api_router.include_router(promos_router, prefix="/promos", tags=["Promos"])
api_router.include_router(admin_promos_router, prefix="/admin/promos", tags=["Admin"])
api_router.include_router(settings_router, prefix="/admin/settings", tags=["Admin"])
api_router.include_router(specialists_router, prefix="/specialists", tags=["Specialists"])
api_router.include_router(services_router, prefix="/services", tags=["Services"])
api_router.include_router(reviews_router, prefix="/reviews", tags=["Reviews"])
api_router.include_router(cron_router, prefix="/cron", tags=["Cron"])

# Export router
router = api_router
