"""Pydantic models for battle snapshots."""

from __future__ import annotations

from .schemas import PlayerStatLine, QuarterStats

__all__ = ["PlayerStatLine", "QuarterStats"]
