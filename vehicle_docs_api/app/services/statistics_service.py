"""
Service layer for dashboard statistics.

Counts vehicles and documents of a user and tallies the status of
every compliance item.  Each vehicle contributes three items, so the
status counters add up to three times the number of vehicles.
"""

from __future__ import annotations

import logging

from vehicle_docs_api.app.schemas.statistics import Stats
from vehicle_docs_api.app.schemas.vehicle import COMPLIANCE_ITEMS
from vehicle_docs_api.app.services.document_service import DocumentService
from vehicle_docs_api.app.services.status_service import EXPIRED, VALID, WARNING
from vehicle_docs_api.app.services.vehicle_service import VehicleService


logger = logging.getLogger(__name__)


class StatisticsService:
    """Summary counters for the dashboard."""

    @classmethod
    async def compute_stats(cls, user_id: str) -> Stats:
        vehicles = await VehicleService.load_vehicles(user_id)
        documents = await DocumentService.list_all_documents(user_id)
        stats = Stats(total_vehicles=len(vehicles), total_documents=len(documents))
        for vehicle in vehicles:
            for item_type in COMPLIANCE_ITEMS:
                status = (vehicle.get(item_type) or {}).get("status")
                if status == EXPIRED:
                    stats.expired_items += 1
                elif status == WARNING:
                    stats.expiring_items += 1
                elif status == VALID:
                    stats.valid_items += 1
        return stats
