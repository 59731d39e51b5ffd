"""Renderer subprocess client (PDF export and preview)."""
from __future__ import annotations

from stagepilot.render.client import RenderClient

__all__ = ["RenderClient"]
