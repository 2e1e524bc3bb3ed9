# tag_tracker/core/reference_frame.py
# Version 1.0 - Changement de repère vers le marqueur de référence
# Modification: Création du module, signal de perte sur front uniquement

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np

from .marker_table import TrackedMarkerTable

logger = logging.getLogger(__name__)


class ReferenceStatus(Enum):
    """État du marqueur de référence pour la frame courante"""
    LIVE = "live"
    LOST = "lost"
    UNSEEN = "unseen"


@dataclass
class RelativePosition:
    """Position d'un marqueur dans le repère du marqueur de référence"""
    marker_id: int
    offset: np.ndarray

    @property
    def distance(self) -> float:
        return float(np.linalg.norm(self.offset))

    @property
    def x(self) -> float:
        return float(self.offset[0])

    @property
    def y(self) -> float:
        return float(self.offset[1])

    @property
    def z(self) -> float:
        return float(self.offset[2])

    def format(self) -> str:
        return f"Id: {self.marker_id}, distance={self.distance:g}m, x={self.x:g}, y={self.y:g}, z={self.z:g}"


@dataclass
class ReferenceReport:
    status: ReferenceStatus
    lost_signal: bool = False
    recovered_signal: bool = False
    positions: List[RelativePosition] = field(default_factory=list)


class ReferenceFrame:
    """Recalcule les positions relatives à chaque frame

    Si la référence n'est plus vivante, sa dernière translation connue reste
    l'origine ; la perte est signalée une seule fois par intervalle de perte.
    """

    def __init__(self, reference_tag_id: int = 2):
        self.reference_tag_id = reference_tag_id
        self._lost = False

    @property
    def is_lost(self) -> bool:
        return self._lost

    def compute(self, table: TrackedMarkerTable) -> ReferenceReport:
        reference = table.get(self.reference_tag_id)

        if reference is None:
            # Jamais observée : pas d'origine disponible
            return ReferenceReport(status=ReferenceStatus.UNSEEN)

        report = ReferenceReport(status=ReferenceStatus.LIVE if reference.is_live else ReferenceStatus.LOST)

        if report.status is ReferenceStatus.LOST and not self._lost:
            self._lost = True
            report.lost_signal = True
            logger.warning(
                f"⚠️ Tag de référence {self.reference_tag_id} hors de vue, "
                f"utilisation de la dernière position connue"
            )
        elif report.status is ReferenceStatus.LIVE and self._lost:
            self._lost = False
            report.recovered_signal = True
            logger.info(f"✅ Tag de référence {self.reference_tag_id} de nouveau détecté")

        origin = reference.translation
        for marker in table:
            if marker.id == self.reference_tag_id or not marker.is_live:
                continue
            report.positions.append(RelativePosition(marker_id=marker.id, offset=marker.translation - origin))

        return report

    def reset(self):
        self._lost = False
