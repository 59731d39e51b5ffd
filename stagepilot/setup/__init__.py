"""Band setup resolution from the band and musician source records."""
from __future__ import annotations

from stagepilot.setup.lineup import normalize_default_lineup_keys
from stagepilot.setup.monitoring import infer_monitoring_default
from stagepilot.setup.resolver import BandSetupResolver

__all__ = ["BandSetupResolver", "infer_monitoring_default", "normalize_default_lineup_keys"]
