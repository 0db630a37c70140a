"""Centralized v1 API router: all module routers are included here."""

from fastapi import APIRouter

from src.modules.catalog.router import router as catalog_router
from src.modules.invitation.router import router as invitation_router
from src.modules.order.router import router as order_router
from src.modules.organization.router import router as organization_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(organization_router)
v1_router.include_router(invitation_router)
v1_router.include_router(catalog_router)
v1_router.include_router(order_router)
