"""Alumni directory API routers."""

from fastapi import APIRouter

from . import admin, contact, directory, profiles

router = APIRouter()
router.include_router(profiles.router)
router.include_router(directory.router)
router.include_router(admin.router)
router.include_router(contact.router)

__all__ = ["router"]
