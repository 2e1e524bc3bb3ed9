# tag_tracker/core/config_manager.py
# Version 1.0 - Configuration JSON du suivi de tags
# Modification: Sections ui / camera / tracking, verbosité logging

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

CONFIG_FILES = {
    'ui': 'ui_config.json',
    'camera': 'camera_config.json',
    'tracking': 'tracking_config.json',
}

REQUIRED_KEYS = {
    'ui': ['display'],
    'camera': ['realsense'],
    'tracking': ['tracking', 'marker'],
}

DEFAULT_VERBOSITY_LEVELS = ['Faible', 'Moyenne', 'Debug']


class ConfigManager:
    """Gestionnaire de configuration principal (un fichier JSON par section)"""

    def __init__(self, config_dir: Optional[Union[str, Path]] = None, silent_mode: bool = False):
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).parent.parent / "config"
        self.silent_mode = silent_mode
        self.configs: Dict[str, Dict[str, Any]] = {}

        self.load_all_configs()

    def load_all_configs(self):
        """Charge toutes les configurations disponibles"""
        for config_type in CONFIG_FILES:
            self.configs[config_type] = self._read_config_file(config_type)

    def _read_config_file(self, config_type: str) -> Dict[str, Any]:
        config_path = self.config_dir / CONFIG_FILES[config_type]

        if not config_path.exists():
            if not self.silent_mode:
                logger.warning(f"⚠️ Fichier manquant: {config_path.name}")
            return {}

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"❌ Erreur chargement {config_type}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"❌ Configuration '{config_type}' n'est pas un objet JSON")
            return {}

        if not self.silent_mode:
            logger.info(f"📋 Configuration {config_type} chargée")
        return data

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Récupère une valeur par clé pointée ('realsense.color_width')"""
        value = self.configs.get(section)
        if value is None:
            return default

        for part in key.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        # Une valeur null en JSON signifie "utiliser le défaut"
        return default if value is None else value

    def set(self, section: str, key: str, value: Any) -> bool:
        """Définit une valeur de configuration (crée les niveaux manquants)"""
        current = self.configs.setdefault(section, {})
        key_parts = key.split('.')

        for part in key_parts[:-1]:
            child = current.get(part)
            if not isinstance(child, dict):
                if child is not None:
                    logger.error(f"❌ Clé {section}.{part} n'est pas une section")
                    return False
                child = current[part] = {}
            current = child

        current[key_parts[-1]] = value
        logger.debug(f"Configuration {section}.{key} définie: {value}")
        return True

    # === LOGGING ===

    def get_logging_verbosity(self) -> str:
        """Niveau de verbosité configuré, "Moyenne" si absent ou invalide"""
        verbosity = self.get('ui', 'logging.console_verbosity', 'Moyenne')

        if verbosity not in self.get_available_verbosity_levels():
            logger.warning(f"⚠️ Niveau verbosité '{verbosity}' invalide, utilisation de 'Moyenne'")
            return 'Moyenne'

        return verbosity

    def set_logging_verbosity(self, verbosity: str) -> bool:
        available_levels = self.get_available_verbosity_levels()
        if verbosity not in available_levels:
            logger.error(f"❌ Niveau verbosité '{verbosity}' invalide. Niveaux disponibles: {available_levels}")
            return False

        return self.set('ui', 'logging.console_verbosity', verbosity)

    def get_available_verbosity_levels(self) -> List[str]:
        return self.get('ui', 'logging.available_levels', DEFAULT_VERBOSITY_LEVELS)

    def is_file_logging_enabled(self) -> bool:
        return bool(self.get('ui', 'logging.file_logging.enabled', False))

    def get_log_file_path(self) -> str:
        return self.get('ui', 'logging.file_logging.log_file', './logs/tag_tracker.log')

    # === SAUVEGARDE ===

    def save_config(self, config_type: str) -> bool:
        """Sauvegarde une configuration spécifique"""
        filename = CONFIG_FILES.get(config_type)
        if not filename or config_type not in self.configs:
            logger.error(f"❌ Type de configuration inconnu: {config_type}")
            return False

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_dir / filename, 'w', encoding='utf-8') as f:
                json.dump(self.configs[config_type], f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"❌ Erreur sauvegarde {config_type}: {e}")
            return False

        logger.info(f"💾 Configuration {config_type} sauvegardée")
        return True

    def reload_config(self, config_type: str) -> bool:
        """Recharge une configuration depuis le disque"""
        if config_type not in CONFIG_FILES:
            return False

        self.configs[config_type] = self._read_config_file(config_type)
        return bool(self.configs[config_type])

    # === VALIDATION ===

    def validate_config(self, config_type: str) -> bool:
        """Vérifie la présence des sections obligatoires"""
        config = self.configs.get(config_type)
        if not isinstance(config, dict):
            return False

        missing = [key for key in REQUIRED_KEYS.get(config_type, []) if key not in config]
        if missing:
            logger.warning(f"⚠️ Configuration '{config_type}' incomplète, manque: {missing}")
            return False
        return True

    def get_config_info(self) -> Dict[str, Any]:
        return {
            'config_dir': str(self.config_dir),
            'loaded_configs': [k for k, v in self.configs.items() if v],
            'valid_configs': {k: self.validate_config(k) for k in self.configs},
            'logging_verbosity': self.get_logging_verbosity(),
        }
