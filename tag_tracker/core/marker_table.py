# tag_tracker/core/marker_table.py
# Version 1.0 - Table des marqueurs suivis avec lissage temporel
# Modification: Création du module (upsert / vieillissement / éviction)

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class TrackedMarker:
    """État de suivi d'un marqueur"""
    id: int
    translation: np.ndarray
    ttl: int
    description: str = ""
    last_seen_frame: int = 0

    @property
    def is_live(self) -> bool:
        return self.ttl >= 0


class TrackedMarkerTable:
    """Table id -> TrackedMarker, mise à jour une fois par frame

    Un marqueur redétecté repart à ``smoothing_frames`` ; chaque frame sans
    détection le décrémente de 1. Il est retiré quand son ttl devient
    négatif, sauf le marqueur de référence qui reste dans la table.
    """

    def __init__(self, smoothing_frames: int = 20, reference_tag_id: int = 2):
        if smoothing_frames < 0:
            raise ValueError("smoothing_frames doit être >= 0")

        self.smoothing_frames = smoothing_frames
        self.reference_tag_id = reference_tag_id
        self._markers: Dict[int, TrackedMarker] = {}
        # Ids mis à jour depuis le dernier vieillissement
        self._refreshed: Set[int] = set()
        self.frame_index = 0

    def is_protected(self, marker_id: int) -> bool:
        return marker_id == self.reference_tag_id

    def upsert(self, marker_id: int, translation, description: str = "") -> TrackedMarker:
        """Insère ou remplace l'entrée d'un marqueur détecté dans la frame courante"""
        marker = TrackedMarker(
            id=marker_id,
            translation=np.asarray(translation, dtype=float).reshape(3).copy(),
            ttl=self.smoothing_frames,
            description=description,
            last_seen_frame=self.frame_index,
        )
        self._markers[marker_id] = marker
        self._refreshed.add(marker_id)
        return marker

    def age_and_evict(self) -> Set[int]:
        """Vieillit les marqueurs non redétectés et retire ceux expirés

        Doit être appelé une seule fois par frame, après tous les upsert.

        Returns:
            Ensemble des ids retirés pendant ce passage
        """
        expired: List[int] = []
        for marker_id, marker in self._markers.items():
            if marker_id in self._refreshed:
                continue
            marker.ttl -= 1
            if marker.ttl < 0 and not self.is_protected(marker_id):
                expired.append(marker_id)

        for marker_id in expired:
            del self._markers[marker_id]
            logger.debug(f"🗑️ Marqueur {marker_id} retiré (non détecté depuis {self.smoothing_frames + 1} frames)")

        self._refreshed.clear()
        self.frame_index += 1
        return set(expired)

    def get(self, marker_id: int) -> Optional[TrackedMarker]:
        return self._markers.get(marker_id)

    def is_live(self, marker_id: int) -> bool:
        marker = self._markers.get(marker_id)
        return marker is not None and marker.is_live

    def ids(self) -> List[int]:
        return sorted(self._markers)

    def __contains__(self, marker_id) -> bool:
        return marker_id in self._markers

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[TrackedMarker]:
        for marker_id in self.ids():
            yield self._markers[marker_id]
