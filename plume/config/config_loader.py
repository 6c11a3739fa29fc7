"""
Plume: Config - Loader

Chargement d'une configuration de logging depuis un fichier YAML.

Example:
    settings = await ConfigLoader("config/logging.yaml").load()
    settings.apply(logger)
"""

from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from .interfaces import IConfigLoader, LoggingSettings


class ConfigIntegrityError(Exception):
    """Fichier de configuration absent ou invalide."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Configuration invalide ({self.path}): {reason}")


class ConfigLoader(IConfigLoader):
    """Chargement des configurations depuis fichiers YAML."""

    def __init__(self, config_path: Union[str, Path]) -> None:
        self.config_path = Path(config_path)

    async def load(self) -> LoggingSettings:
        """
        Charge et valide le fichier.

        Returns:
            LoggingSettings validé

        Raises:
            ConfigIntegrityError: Si fichier inexistant, YAML invalide ou validation en échec
        """
        if not self.config_path.exists():
            raise ConfigIntegrityError(self.config_path, "fichier non trouvé")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigIntegrityError(self.config_path, f"erreur de parsing YAML: {e}")
        except OSError as e:
            raise ConfigIntegrityError(self.config_path, f"erreur de lecture fichier: {e}")

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigIntegrityError(self.config_path, "la configuration doit être un objet YAML")

        # Bloc optionnel "logging:" en racine
        if set(raw) == {"logging"} and isinstance(raw["logging"], dict):
            raw = raw["logging"]

        try:
            return LoggingSettings.model_validate(raw)
        except ValidationError as e:
            raise ConfigIntegrityError(self.config_path, f"validation échouée: {e}") from e
