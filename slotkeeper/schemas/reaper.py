"""Stale-hold reaper DTOs."""

from typing import Dict

from ._strict_base import StrictModel


class ReapResponse(StrictModel):
    success: bool = True
    cutoff_minutes: int
    deleted: Dict[str, int]


class HoldStatsResponse(StrictModel):
    cutoff_minutes: int
    active: Dict[str, int]
    stale: Dict[str, int]
