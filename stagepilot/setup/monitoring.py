"""Monitoring defaults inferred from a musician's monitor preset reference."""
from __future__ import annotations

from stagepilot.models.setup import MonitoringDefault, MonitorMode, MonitorType


def infer_monitoring_default(monitor_ref: str) -> MonitoringDefault:
    """Classify a free-text monitor preset reference.

    Matching is case-insensitive substring search::

        "Shure PSM wireless stereo" → iem_wireless, stereo, 2 mixes
        "iem_wired_mono"            → iem_wired,    mono,   2 mixes
        "wedge-1"                   → wedge,        mono,   1 mix

    "wireless" takes precedence over "iem"; anything else is a wedge.
    """
    normalized = monitor_ref.strip().lower()
    if "wireless" in normalized:
        monitor_type = MonitorType.WIRELESS_IEM
    elif "iem" in normalized:
        monitor_type = MonitorType.WIRED_IEM
    else:
        monitor_type = MonitorType.WEDGE
    mode = MonitorMode.STEREO if "stereo" in normalized else MonitorMode.MONO
    return MonitoringDefault(
        type=monitor_type,
        mode=mode,
        mix_count=1 if monitor_type is MonitorType.WEDGE else 2,
    )
