# tag_tracker/core/tag_detector.py
# Version 1.0 - Détection AprilTag via OpenCV ArUco
# Modification: Détections brutes (id + coins) et résolution de pose par marqueur

import logging
from dataclasses import dataclass
from typing import List, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class RawDetection:
    """Détection brute d'un tag dans une frame (coins en pixels, ordre ArUco)"""
    id: int
    corners: np.ndarray

    @property
    def center(self) -> Tuple[int, int]:
        cx, cy = self.corners.mean(axis=0)
        return int(round(cx)), int(round(cy))

    def relative_translation_rotation(self, marker_size: float, fx: float, fy: float,
                                      px: float, py: float) -> Tuple[np.ndarray, np.ndarray]:
        """Pose du tag dans le repère caméra (x droite, y bas, z avant), sans distorsion"""
        half = marker_size / 2.0
        object_points = np.array([
            [-half, half, 0.0],
            [half, half, 0.0],
            [half, -half, 0.0],
            [-half, -half, 0.0],
        ], dtype=np.float32)

        camera_matrix = np.array([
            [fx, 0.0, px],
            [0.0, fy, py],
            [0.0, 0.0, 1.0],
        ], dtype=np.float64)

        try:
            success, rvec, tvec = cv2.solvePnP(
                object_points,
                self.corners.reshape(-1, 2).astype(np.float32),
                camera_matrix,
                np.zeros(5),
                flags=cv2.SOLVEPNP_IPPE_SQUARE,
            )
        except cv2.error as e:
            raise ValueError(f"solvePnP en échec pour le tag {self.id}: {e}") from e

        if not success:
            raise ValueError(f"solvePnP sans solution pour le tag {self.id}")

        rotation, _ = cv2.Rodrigues(rvec)
        return tvec.reshape(3), rotation


class TagDetector:
    """Détecteur de tags fiduciaires (dictionnaire AprilTag 36h11 par défaut)"""

    def __init__(self, config):
        self.config = config
        self.dictionary_name = self.config.get('tracking', 'marker.dictionary', 'APRILTAG_36h11')
        self.params_config = self.config.get('tracking', 'marker.detection_params', {})

        self._init_detector()

    def _init_detector(self):
        """Initialise le détecteur avec compatibilité multi-versions OpenCV"""
        dict_attr = getattr(cv2.aruco, f'DICT_{self.dictionary_name}', None)
        if dict_attr is None:
            raise ValueError(f"Dictionnaire inconnu: {self.dictionary_name}")

        self.dictionary = cv2.aruco.getPredefinedDictionary(dict_attr)
        self.parameters = cv2.aruco.DetectorParameters()
        self._configure_params()

        if hasattr(cv2.aruco, 'ArucoDetector'):
            # OpenCV 4.7+
            self.detector = cv2.aruco.ArucoDetector(self.dictionary, self.parameters)
            logger.info(f"✅ Détecteur {self.dictionary_name}: API ArucoDetector")
        else:
            self.detector = None
            logger.info(f"✅ Détecteur {self.dictionary_name}: ancienne API detectMarkers")

    def _configure_params(self):
        for name, value in self.params_config.items():
            if not hasattr(self.parameters, name):
                logger.warning(f"⚠️ Paramètre de détection inconnu ignoré: {name}")
                continue
            setattr(self.parameters, name, value)
        logger.debug(f"🔧 Paramètres de détection: {self.params_config}")

    @staticmethod
    def to_grayscale(image: np.ndarray) -> np.ndarray:
        if image.ndim == 2:
            return image
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

    def extract_markers(self, gray: np.ndarray) -> List[RawDetection]:
        """Toutes les détections de la frame (liste vide si aucune)"""
        if gray is None or gray.size == 0:
            return []

        if self.detector is not None:
            corners, ids, _ = self.detector.detectMarkers(gray)
        else:
            corners, ids, _ = cv2.aruco.detectMarkers(gray, self.dictionary, parameters=self.parameters)

        if ids is None:
            return []

        return [
            RawDetection(id=int(marker_id), corners=np.asarray(corners[i], dtype=np.float32).reshape(4, 2))
            for i, marker_id in enumerate(ids.flatten())
        ]
