"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers.  Routes are declared with
their full paths inside each module (``/vehicles``,
``/vehicles/{vehicle_id}/documents``, ``/documents/{document_id}/url``)
because documents live both under a vehicle and on their own.
"""

from fastapi import APIRouter

from .endpoints import documents, files, health, history, statistics, users, vehicles

router = APIRouter()

router.include_router(health.router, tags=["health"])
router.include_router(users.router, tags=["users"])
router.include_router(vehicles.router, prefix="/vehicles", tags=["vehicles"])
router.include_router(documents.router, tags=["documents"])
router.include_router(history.router, tags=["history"])
router.include_router(statistics.router, tags=["statistics"])
router.include_router(files.router, tags=["files"])
