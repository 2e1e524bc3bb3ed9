# tag_tracker/utils/logging_utils.py
# Version 1.0 - Logging centralisé avec contrôle de verbosité
# Modification: Niveaux Faible/Moyenne/Debug, niveau OpenCV, fichier optionnel

import logging
import sys
from pathlib import Path
from typing import Dict, Optional

import cv2


class VerbosityManager:
    """Gestionnaire de verbosité des logs"""

    VERBOSITY_LEVELS: Dict[str, int] = {
        "Faible": logging.WARNING,    # Erreurs et avertissements uniquement
        "Moyenne": logging.INFO,      # Informations importantes + erreurs/avertissements
        "Debug": logging.DEBUG        # Tous les messages de débogage
    }

    # Niveaux natifs OpenCV (0=SILENT, 2=ERROR, 3=WARNING)
    OPENCV_LEVELS: Dict[str, int] = {
        "Faible": 0,
        "Moyenne": 2,
        "Debug": 3
    }

    LOG_FORMAT = '[%(levelname)s] %(name)s: %(message)s'

    @classmethod
    def setup_logging(cls, verbosity: str = "Moyenne", log_file: Optional[str] = None) -> None:
        """Configure le logging selon le niveau de verbosité

        Args:
            verbosity: Niveau de verbosité ("Faible", "Moyenne", "Debug")
            log_file: Fichier de log additionnel, aucun si None
        """
        log_level = cls.VERBOSITY_LEVELS.get(verbosity, logging.INFO)

        handlers = [logging.StreamHandler(sys.stdout)]
        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

        logging.basicConfig(
            level=log_level,
            format=cls.LOG_FORMAT,
            handlers=handlers,
            force=True
        )

        if hasattr(cv2, 'setLogLevel'):
            cv2.setLogLevel(cls.OPENCV_LEVELS.get(verbosity, 2))

        logging.getLogger(__name__).info(f"🔧 Logging configuré en mode '{verbosity}'")

    @classmethod
    def get_verbosity_from_config(cls, config_manager) -> str:
        if not config_manager:
            return "Moyenne"

        verbosity = config_manager.get_logging_verbosity()
        if verbosity not in cls.VERBOSITY_LEVELS:
            logging.warning(f"⚠️ Niveau de verbosité '{verbosity}' invalide, utilisation de 'Moyenne'")
            return "Moyenne"

        return verbosity


def setup_application_logging(config_manager=None, verbosity: Optional[str] = None) -> str:
    """Configure le logging de l'application; retourne le niveau appliqué"""
    if verbosity is None:
        verbosity = VerbosityManager.get_verbosity_from_config(config_manager)

    log_file = None
    if config_manager and config_manager.is_file_logging_enabled():
        log_file = config_manager.get_log_file_path()

    VerbosityManager.setup_logging(verbosity, log_file)
    return verbosity
