"""Schemas for the aggregated activity feed."""

from typing import List, Literal, Optional, Union

from .base import CamelModel


class HistoryItem(CamelModel):
    """One entry of the feed: a creation event or a compliance deadline."""

    id: str
    date: str
    type: Literal["vehicle", "insurance", "inspection", "taxes", "document"]
    title: str
    description: Optional[str] = None
    vehicle_id: Optional[str] = None
    vehicle_name: Optional[str] = None
    vehicle_plate: Optional[str] = None
    date_range: Optional[str] = None
    status: Optional[str] = None
    amount: Optional[Union[str, float]] = None
    document_type: Optional[str] = None


class HistoryList(CamelModel):
    history: List[HistoryItem]
