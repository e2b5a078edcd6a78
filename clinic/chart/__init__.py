"""Dental chart geometry package."""
from clinic.chart.arch import ArchSide, ToothPosition, crown_path, tooth_position
from clinic.chart.oval import ConnectorSegment, OvalPosition, connector_segments, oval_positions
from clinic.chart.teeth import is_valid_tooth_number

__all__ = [
    "ArchSide",
    "ToothPosition",
    "crown_path",
    "tooth_position",
    "ConnectorSegment",
    "OvalPosition",
    "connector_segments",
    "oval_positions",
    "is_valid_tooth_number",
]
