# tag_tracker/main.py
# Version 1.0 - Point d'entrée du suivi de tags
# Modification: Chargement config, logging, boucle de suivi, arrêt sur signal

import argparse
import logging
import signal
import sys

from .core.config_manager import ConfigManager
from .core.tag_detector import TagDetector
from .core.tracking_engine import TagTrackingEngine
from .core.tracking_session import TrackingSession
from .hardware.realsense_driver import FrameAcquisitionError, RealSenseCamera
from .ui.presenter import ConsoleReporter, DisplayWindow
from .utils.logging_utils import VerbosityManager, setup_application_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Suivi de tags AprilTag relatif à un tag de référence")
    parser.add_argument("--config-dir", default=None, help="Dossier des fichiers de configuration JSON")
    parser.add_argument("--verbosity", choices=list(VerbosityManager.VERBOSITY_LEVELS), default=None,
                        help="Verbosité des logs (défaut: configuration)")
    parser.add_argument("--headless", action="store_true", help="Pas de fenêtre d'affichage")
    parser.add_argument("--max-frames", type=int, default=None, help="Arrêt après N frames")
    return parser.parse_args(argv)


def build_session(config: ConfigManager) -> TrackingSession:
    camera = RealSenseCamera(config)
    detector = TagDetector(config)
    engine = TagTrackingEngine(config)
    presenter = DisplayWindow(config)
    reporter = ConsoleReporter(config)
    use_device_intrinsics = bool(config.get('camera', 'realsense.use_device_intrinsics', False))
    return TrackingSession(camera, detector, engine, presenter, reporter, use_device_intrinsics)


def main(argv=None) -> int:
    """Point d'entrée principal de l'application"""
    args = parse_args(argv)

    config = ConfigManager(args.config_dir, silent_mode=True)
    if args.headless:
        config.set('ui', 'display.show_window', False)

    verbosity = setup_application_logging(config, args.verbosity)
    logger = logging.getLogger(__name__)

    if verbosity != "Faible":
        # Rechargement avec logs pour tracer les fichiers manquants
        config.silent_mode = False
        config.load_all_configs()
        if args.headless:
            config.set('ui', 'display.show_window', False)

    logger.info("🚀 Démarrage Tag Tracker")

    try:
        session = build_session(config)
    except ValueError as e:
        logger.error(f"❌ Configuration invalide: {e}")
        return 1

    def request_stop(signum, frame):
        logger.info(f"⏹️ Signal {signum} reçu, arrêt après la frame en cours")
        session.stop()

    signal.signal(signal.SIGINT, request_stop)
    signal.signal(signal.SIGTERM, request_stop)

    try:
        session.run(max_frames=args.max_frames)
    except FrameAcquisitionError as e:
        logger.error(f"❌ Erreur fatale d'acquisition: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
