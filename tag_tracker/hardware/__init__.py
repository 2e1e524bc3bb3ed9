# hardware/__init__.py
# Version 1.0 - Source de frames RealSense

from .realsense_driver import FrameAcquisitionError, RealSenseCamera

__all__ = ['FrameAcquisitionError', 'RealSenseCamera']
