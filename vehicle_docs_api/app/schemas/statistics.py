"""Schemas for the dashboard counters."""

from .base import CamelModel


class Stats(CamelModel):
    total_vehicles: int = 0
    total_documents: int = 0
    expired_items: int = 0
    expiring_items: int = 0
    valid_items: int = 0


class StatsEnvelope(CamelModel):
    stats: Stats
