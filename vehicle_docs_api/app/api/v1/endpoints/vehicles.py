"""
Vehicle endpoints for API v1.

Every route is scoped to the authenticated user: a vehicle id that
belongs to someone else behaves exactly like an unknown id (404).
"""

from fastapi import APIRouter, Depends

from vehicle_docs_api.app.core.security import AuthenticatedUser, get_current_user
from vehicle_docs_api.app.schemas.vehicle import VehicleCreate, VehicleEnvelope, VehicleList, VehicleUpdate
from vehicle_docs_api.app.services.vehicle_service import VehicleService

router = APIRouter()


@router.get("", response_model=VehicleList, response_model_exclude_unset=True)
async def list_vehicles(current_user: AuthenticatedUser = Depends(get_current_user)) -> dict:
    """Return the caller's vehicles (an empty list when there are none)."""
    return {"vehicles": await VehicleService.list_vehicles(current_user.id)}


@router.post("", response_model=VehicleEnvelope, response_model_exclude_unset=True)
async def create_vehicle(
    payload: VehicleCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    """Register a vehicle; compliance statuses are derived from their dates."""
    return {"vehicle": await VehicleService.create_vehicle(current_user.id, payload)}


@router.put("/{vehicle_id}", response_model=VehicleEnvelope, response_model_exclude_unset=True)
async def update_vehicle(
    vehicle_id: str,
    payload: VehicleUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    return {"vehicle": await VehicleService.update_vehicle(current_user.id, vehicle_id, payload)}


@router.delete("/{vehicle_id}")
async def delete_vehicle(
    vehicle_id: str,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    """Delete a vehicle along with its documents and their files."""
    await VehicleService.delete_vehicle(current_user.id, vehicle_id)
    return {"success": True}
