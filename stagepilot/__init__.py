"""StagePilot: project storage and band-setup resolution for live-event stage plans."""
from __future__ import annotations

from stagepilot.api import CommandResponse, StagePilotApi

__all__ = ["CommandResponse", "StagePilotApi"]
