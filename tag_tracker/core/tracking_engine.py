#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tag_tracker/core/tracking_engine.py
Moteur de suivi des tags - Version 1.0
Modification: Ingestion par frame, vieillissement, repère de référence, cadence d'affichage
"""

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Dict, Iterable, List, Optional, Set

from .geometry import CameraIntrinsics, describe_detection
from .marker_table import TrackedMarker, TrackedMarkerTable
from .reference_frame import ReferenceFrame, ReferenceStatus, RelativePosition

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    """Résultat du traitement d'une frame"""
    frame_index: int
    descriptions: Dict[int, str] = field(default_factory=dict)
    evicted: Set[int] = field(default_factory=set)
    reference_status: ReferenceStatus = ReferenceStatus.UNSEEN
    reference_lost: bool = False
    reference_recovered: bool = False
    positions: List[RelativePosition] = field(default_factory=list)
    emit: bool = False

    def report_lines(self) -> List[str]:
        return [position.format() for position in self.positions]


class TagTrackingEngine:
    """Suivi des marqueurs et positions relatives au marqueur de référence"""

    def __init__(self, config):
        self.config = config

        self.smoothing_frames = int(self.config.get('tracking', 'tracking.smoothing_frames', 20))
        self.display_interval = int(self.config.get('tracking', 'tracking.display_interval', 10))
        self.reference_tag_id = int(self.config.get('tracking', 'tracking.reference_tag_id', 2))
        self.marker_size = float(self.config.get('tracking', 'marker.size_m', 0.07))

        if self.display_interval < 1:
            raise ValueError("display_interval doit être >= 1")
        if self.marker_size <= 0:
            raise ValueError("marker.size_m doit être > 0")

        width = self.config.get('camera', 'realsense.color_width', 848)
        height = self.config.get('camera', 'realsense.color_height', 480)
        self.intrinsics = CameraIntrinsics(
            fx=float(self.config.get('tracking', 'intrinsics.fx', 600.0)),
            fy=float(self.config.get('tracking', 'intrinsics.fy', 600.0)),
            px=float(self.config.get('tracking', 'intrinsics.px', width / 2)),
            py=float(self.config.get('tracking', 'intrinsics.py', height / 2)),
        )

        self.table = TrackedMarkerTable(self.smoothing_frames, self.reference_tag_id)
        self.reference_frame = ReferenceFrame(self.reference_tag_id)
        self._display_count = 0
        self._lock = RLock()

        logger.info(
            f"🎯 TagTrackingEngine initialisé - référence: {self.reference_tag_id}, "
            f"lissage: {self.smoothing_frames} frames, affichage: 1/{self.display_interval}"
        )

    def set_intrinsics(self, intrinsics: CameraIntrinsics):
        self.intrinsics = intrinsics
        logger.info(f"📐 Intrinsèques: fx={intrinsics.fx:.1f} fy={intrinsics.fy:.1f} "
                    f"px={intrinsics.px:.1f} py={intrinsics.py:.1f}")

    def process_detections(self, detections: Iterable) -> FrameResult:
        """Traite l'ensemble des détections brutes d'une frame (éventuellement vide)"""
        with self._lock:
            result = FrameResult(frame_index=self.table.frame_index)
            fx, fy, px, py = self.intrinsics.fx, self.intrinsics.fy, self.intrinsics.px, self.intrinsics.py

            for detection in detections:
                try:
                    translation, _, text = describe_detection(detection, self.marker_size, fx, fy, px, py)
                except ValueError as e:
                    # Pose non résolue : équivalent à une non-détection
                    logger.debug(f"Pose non résolue pour le tag {detection.id}: {e}")
                    continue

                self.table.upsert(int(detection.id), translation, text)
                result.descriptions[int(detection.id)] = text

            result.evicted = self.table.age_and_evict()

            report = self.reference_frame.compute(self.table)
            result.reference_status = report.status
            result.reference_lost = report.lost_signal
            result.reference_recovered = report.recovered_signal
            result.positions = report.positions

            result.emit = self._display_count == 0
            self._display_count = (self._display_count + 1) % self.display_interval

            return result

    def snapshot(self) -> Dict[int, TrackedMarker]:
        """Copie de l'état de la table entre deux frames"""
        with self._lock:
            return {
                marker.id: TrackedMarker(
                    id=marker.id,
                    translation=marker.translation.copy(),
                    ttl=marker.ttl,
                    description=marker.description,
                    last_seen_frame=marker.last_seen_frame,
                )
                for marker in self.table
            }

    def get_marker(self, marker_id: int) -> Optional[TrackedMarker]:
        with self._lock:
            return self.table.get(marker_id)

    def reset(self):
        """Vide la table et remet la cadence à zéro"""
        with self._lock:
            self.table = TrackedMarkerTable(self.smoothing_frames, self.reference_tag_id)
            self.reference_frame.reset()
            self._display_count = 0
        logger.info("🔄 Moteur de suivi réinitialisé")
