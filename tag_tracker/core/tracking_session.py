# tag_tracker/core/tracking_session.py
# Version 1.0 - Boucle de traitement frame par frame
# Modification: Acquisition, détection, suivi, affichage, arrêt coopératif

import logging
from typing import Optional

from ..hardware.realsense_driver import FrameAcquisitionError

logger = logging.getLogger(__name__)


class TrackingSession:
    """Boucle synchrone: une frame est entièrement traitée avant la suivante"""

    def __init__(self, camera, detector, engine, presenter, reporter, use_device_intrinsics: bool = False):
        self.camera = camera
        self.detector = detector
        self.engine = engine
        self.presenter = presenter
        self.reporter = reporter
        self.use_device_intrinsics = use_device_intrinsics
        self._stop_requested = False
        self.frames_processed = 0

    def stop(self):
        """Demande l'arrêt après la frame en cours"""
        self._stop_requested = True

    def run(self, max_frames: Optional[int] = None) -> int:
        """Traite les frames jusqu'à l'arrêt; retourne le nombre de frames traitées

        Raises:
            FrameAcquisitionError: caméra non démarrée ou frame non reçue
        """
        if not self.camera.start_streaming():
            raise FrameAcquisitionError("Impossible de démarrer la caméra")

        if self.use_device_intrinsics:
            intrinsics = self.camera.get_intrinsics()
            if intrinsics is not None:
                self.engine.set_intrinsics(intrinsics)
            else:
                logger.warning("⚠️ Intrinsèques caméra indisponibles, valeurs de configuration conservées")

        self._stop_requested = False
        self.frames_processed = 0
        logger.info("▶️ Suivi démarré")

        try:
            while not self._stop_requested:
                if max_frames is not None and self.frames_processed >= max_frames:
                    break
                self._process_next_frame()
                self.frames_processed += 1
        finally:
            info = self.camera.get_info()
            logger.info(f"📊 Caméra: {info['total_frames']} frames acquises, {info['fps']:.1f} FPS")
            self.camera.stop_streaming()
            self.presenter.close()
            logger.info(f"⏹️ Suivi arrêté après {self.frames_processed} frames")

        return self.frames_processed

    def _process_next_frame(self):
        image = self.camera.wait_for_frame()
        gray = self.detector.to_grayscale(image)
        detections = self.detector.extract_markers(gray)

        result = self.engine.process_detections(detections)

        for detection in detections:
            self.presenter.draw_overlay(image, detection)

        if result.emit:
            self.reporter.report(result)
            logger.debug(f"Frame {result.frame_index}: {len(detections)} détection(s), "
                         f"référence {result.reference_status.value}")

        self.presenter.show(image)
        if self.presenter.poll_exit_key():
            logger.info("⌨️ Touche de sortie pressée")
            self.stop()
