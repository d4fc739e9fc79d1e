"""Web router aggregation."""

from fastapi import APIRouter

from wageconnect.routes.account import router as account_router
from wageconnect.routes.auth import router as auth_router
from wageconnect.routes.dashboards import router as dashboards_router
from wageconnect.routes.jobs import router as jobs_router
from wageconnect.routes.notifications import router as notifications_router
from wageconnect.routes.web import router as pages_router
from wageconnect.routes.wishlist import router as wishlist_router

router = APIRouter()

router.include_router(pages_router)
router.include_router(auth_router)
router.include_router(jobs_router)
router.include_router(wishlist_router)
router.include_router(notifications_router)
router.include_router(dashboards_router)
router.include_router(account_router)
