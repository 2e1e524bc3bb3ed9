#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tag_tracker/hardware/realsense_driver.py
Source de frames couleur Intel RealSense - Version 1.0
Modification: Flux couleur seul, préchauffage, attente bornée par timeout
"""

import logging
import time
from typing import Any, Dict, Optional

import numpy as np

try:
    import pyrealsense2 as rs
except ImportError:
    rs = None
    logging.warning("⚠️ pyrealsense2 non disponible - caméra RealSense inutilisable")

from ..core.geometry import CameraIntrinsics

logger = logging.getLogger(__name__)


class FrameAcquisitionError(RuntimeError):
    """Caméra impossible à démarrer ou frame non reçue à temps (fatal)"""


class RealSenseCamera:
    """Driver RealSense D4xx réduit au flux couleur BGR8"""

    def __init__(self, config):
        self.config = config

        self.pipeline = None
        self.config_rs = None
        self.profile = None
        self.is_streaming = False

        # Statistiques
        self.frame_count = 0
        self.total_frames = 0
        self.last_fps_time = time.time()
        self.current_fps = 0.0
        self.last_timestamp = 0.0

        self.device_serial = self.config.get('camera', 'realsense.device_serial', None)
        self.color_width = self.config.get('camera', 'realsense.color_width', 848)
        self.color_height = self.config.get('camera', 'realsense.color_height', 480)
        self.color_fps = self.config.get('camera', 'realsense.color_fps', 30)
        self.warmup_frames = self.config.get('camera', 'realsense.warmup_frames', 30)
        self.frame_timeout_ms = self.config.get('camera', 'realsense.frame_timeout_ms', 5000)

        logger.info(f"🎥 RealSense initialisé - Série: {self.device_serial or 'Auto'}")

    def start_streaming(self) -> bool:
        """Démarre le flux puis laisse l'auto-exposition se stabiliser"""
        if self.is_streaming:
            logger.warning("⚠️ Streaming déjà démarré")
            return True

        if rs is None:
            logger.error("❌ pyrealsense2 absent, impossible de démarrer la caméra")
            return False

        logger.info("📷 Démarrage streaming RealSense...")

        try:
            self.pipeline = rs.pipeline()
            self.config_rs = rs.config()

            if self.device_serial:
                self.config_rs.enable_device(self.device_serial)
                logger.info(f"🎯 Device sélectionné: {self.device_serial}")

            self.config_rs.enable_stream(
                rs.stream.color,
                self.color_width,
                self.color_height,
                rs.format.bgr8,
                self.color_fps
            )
            self.profile = self.pipeline.start(self.config_rs)

            # Préchauffage: premières frames ignorées
            for _ in range(self.warmup_frames):
                self.pipeline.wait_for_frames(self.frame_timeout_ms)

        except RuntimeError as e:
            logger.error(f"❌ Erreur démarrage streaming: {e}")
            if self.profile is not None:
                # Pipeline démarré mais préchauffage en échec
                try:
                    self.pipeline.stop()
                except RuntimeError as stop_error:
                    logger.error(f"❌ Erreur arrêt pipeline après échec: {stop_error}")
            self._cleanup()
            return False

        self.is_streaming = True
        self.frame_count = 0
        self.total_frames = 0
        self.last_fps_time = time.time()

        logger.info(f"✅ Streaming RealSense démarré: {self.color_width}x{self.color_height}@{self.color_fps}fps "
                    f"({self.warmup_frames} frames de préchauffage)")
        return True

    def wait_for_frame(self) -> np.ndarray:
        """Attend la prochaine image couleur (bloquant, borné par frame_timeout_ms)"""
        if not self.is_streaming:
            raise FrameAcquisitionError("Streaming non démarré")

        try:
            frames = self.pipeline.wait_for_frames(self.frame_timeout_ms)
        except RuntimeError as e:
            raise FrameAcquisitionError(f"Aucune frame reçue en {self.frame_timeout_ms} ms: {e}") from e

        color_frame = frames.get_color_frame()
        if not color_frame:
            raise FrameAcquisitionError("Frame reçue sans image couleur")

        self.last_timestamp = frames.get_timestamp()
        self._update_fps_stats()
        return np.asanyarray(color_frame.get_data())

    def get_intrinsics(self) -> Optional[CameraIntrinsics]:
        """Intrinsèques du flux couleur actif, None si indisponibles"""
        if not self.is_streaming or self.profile is None:
            return None

        try:
            color_stream = self.profile.get_stream(rs.stream.color)
            intr = color_stream.as_video_stream_profile().get_intrinsics()
        except RuntimeError as e:
            logger.error(f"❌ Erreur récupération intrinsèques: {e}")
            return None

        return CameraIntrinsics(fx=intr.fx, fy=intr.fy, px=intr.ppx, py=intr.ppy)

    def get_info(self) -> Dict[str, Any]:
        """Retourne les informations de la caméra"""
        return {
            'device_serial': self.device_serial or 'Auto',
            'status': 'streaming' if self.is_streaming else 'stopped',
            'color_resolution': f"{self.color_width}x{self.color_height}",
            'fps': self.current_fps if self.is_streaming else 0.0,
            'total_frames': self.total_frames,
            'last_timestamp': self.last_timestamp
        }

    def _update_fps_stats(self):
        self.total_frames += 1
        self.frame_count += 1
        current_time = time.time()

        elapsed = current_time - self.last_fps_time
        if elapsed >= 1.0:
            self.current_fps = self.frame_count / elapsed
            self.frame_count = 0
            self.last_fps_time = current_time

    def stop_streaming(self):
        """Arrête le streaming (sans effet si déjà arrêté)"""
        if self.is_streaming and self.pipeline is not None:
            try:
                self.pipeline.stop()
                logger.info("📷 Streaming RealSense arrêté")
            except RuntimeError as e:
                logger.error(f"❌ Erreur arrêt streaming: {e}")

        self._cleanup()

    def _cleanup(self):
        self.is_streaming = False
        self.pipeline = None
        self.config_rs = None
        self.profile = None
