# tag_tracker/ui/presenter.py
# Version 1.0 - Affichage OpenCV et rapport console
# Modification: Overlay des tags, fenêtre, touche de sortie, rapport périodique

import logging
import sys

import cv2
import numpy as np

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\x1B[2J\x1B[H"


class DisplayWindow:
    """Fenêtre OpenCV avec overlay des tags détectés"""

    def __init__(self, config):
        self.config = config
        self.window_title = self.config.get('ui', 'display.window_title', 'Display Image')
        self.show_window = bool(self.config.get('ui', 'display.show_window', True))
        self.exit_key = int(self.config.get('ui', 'display.exit_key', 27))
        self.wait_key_ms = int(self.config.get('ui', 'display.wait_key_ms', 10))
        self._window_open = False

    def draw_overlay(self, image: np.ndarray, detection):
        """Contour, centre et identifiant du tag"""
        corners = np.asarray(detection.corners).reshape(-1, 2).astype(np.int32)
        cv2.polylines(image, [corners], True, (0, 255, 0), 2)
        # Premier coin marqué pour visualiser l'orientation
        cv2.circle(image, tuple(int(v) for v in corners[0]), 4, (0, 0, 255), -1)

        center = detection.center
        cv2.circle(image, center, 3, (255, 0, 0), -1)
        cv2.putText(image, str(detection.id), (center[0] + 6, center[1] - 6),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 255), 2)

    def show(self, image: np.ndarray):
        if not self.show_window:
            return
        if not self._window_open:
            cv2.namedWindow(self.window_title, cv2.WINDOW_AUTOSIZE)
            self._window_open = True
        cv2.imshow(self.window_title, image)

    def poll_exit_key(self) -> bool:
        if not self.show_window:
            return False
        return (cv2.waitKey(self.wait_key_ms) & 0xFF) == self.exit_key

    def close(self):
        if self._window_open:
            cv2.destroyWindow(self.window_title)
            self._window_open = False


class ConsoleReporter:
    """Rapport des positions relatives sur la sortie standard"""

    def __init__(self, config, stream=None):
        self.config = config
        self.clear_console = bool(self.config.get('ui', 'display.clear_console', True))
        self.stream = stream or sys.stdout

    def report(self, result):
        if self.clear_console:
            self.stream.write(CLEAR_SCREEN)
        for line in result.report_lines():
            self.stream.write(line + "\n")
        self.stream.flush()
