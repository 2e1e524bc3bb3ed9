# tag_tracker/core/__init__.py
"""
Module core - Suivi des tags et changement de repère - Version 1.0
"""

from .geometry import CameraIntrinsics, describe_detection, normalize_angle, rotation_to_euler
from .marker_table import TrackedMarker, TrackedMarkerTable
from .reference_frame import ReferenceFrame, ReferenceStatus, RelativePosition
from .tracking_engine import FrameResult, TagTrackingEngine

__all__ = [
    'CameraIntrinsics',
    'describe_detection',
    'normalize_angle',
    'rotation_to_euler',
    'TrackedMarker',
    'TrackedMarkerTable',
    'ReferenceFrame',
    'ReferenceStatus',
    'RelativePosition',
    'FrameResult',
    'TagTrackingEngine',
]
