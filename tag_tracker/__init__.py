"""
Tag Tracker - suivi de tags AprilTag et positions relatives à un tag de référence
"""

__version__ = "1.0.0"
