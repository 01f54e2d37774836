import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Optional, Tuple

import yaml

from chatlog_translator.core.errors import ConfigError

logger = logging.getLogger(__name__)


class TranslationMode(IntEnum):
    """Values of 'translationMode' in the addon options."""
    DEEPL = 1
    GOOGLE_APPS_SCRIPT = 2


# Language codes selectable from the addon options, 1-based in the UI
DEEPL_LANGUAGES = (
    'EN-US', 'EN-GB', 'JA', 'KO', 'ZH-HANS', 'ZH-HANT', 'FR', 'DE',
    'ES', 'PT-BR', 'RU', 'IT', 'TH', 'VI', 'ID', 'AR',
)
APPS_SCRIPT_LANGUAGES = (
    'en', 'en', 'ja', 'ko', 'zh-CN', 'zh-TW', 'fr', 'de',
    'es', 'pt-BR', 'ru', 'it', 'th', 'vi', 'id', 'ar',
)

LANGUAGE_TABLES = {
    TranslationMode.DEEPL: (DEEPL_LANGUAGES, 'EN-US'),
    TranslationMode.GOOGLE_APPS_SCRIPT: (APPS_SCRIPT_LANGUAGES, 'en'),
}


def resolve_language(languages: Tuple[str, ...], default: str, index: Optional[int]) -> str:
    """Map a 1-based option index to a language code, or the default when out of range."""
    if index is not None and 1 <= index <= len(languages):
        return languages[index - 1]
    return default


def resolve_target_language(mode: TranslationMode, index: Optional[int]) -> str:
    languages, default = LANGUAGE_TABLES[mode]
    return resolve_language(languages, default, index)


@dataclass(frozen=True)
class TranslationConfig:
    """Everything a provider needs for one cycle."""
    provider: TranslationMode
    target_language: str
    api_key: Optional[str] = None
    deployment_id: Optional[str] = None


class ConfigProvider(ABC):
    """Source of the translation configuration, consulted once per cycle."""

    @abstractmethod
    def load(self) -> TranslationConfig:
        """Return a validated config or raise ConfigError."""
        pass


class StaticConfigProvider(ConfigProvider):
    def __init__(self, config: TranslationConfig):
        self.config = config

    def load(self) -> TranslationConfig:
        return self.config


class YamlOptionsProvider(ConfigProvider):
    """
    Reads the options document the in-game addon writes:

        language: 3                 # 1-based index into the backend's language table
        translationMode: 1          # 1 = DeepL, 2 = Google Apps Script
        deeplApiKey: "xxxx:fx"
        googleAppScriptDeploymentId: "AKfy..."

    The file is re-read every cycle so changes made in game apply on the
    next tick without restarting.

    The addon itself saves options.lua; this reader does not parse it, so
    the same keys must be supplied as YAML (default <addon_dir>/options.yml).
    """

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> TranslationConfig:
        logger.info("check translator options.")
        data = self._read()

        mode = self._mode(data.get('translationMode'))
        language_index = self._language_index(data.get('language'))
        target = resolve_target_language(mode, language_index)

        if mode == TranslationMode.DEEPL:
            api_key = self._required_str(data, 'deeplApiKey', "DeepL API Key not set.")
            config = TranslationConfig(provider=mode, target_language=target, api_key=api_key)
        else:
            dep_id = self._required_str(data, 'googleAppScriptDeploymentId',
                                        "Google App Script Deployment ID not set.")
            config = TranslationConfig(provider=mode, target_language=target, deployment_id=dep_id)

        logger.info(f"options: mode={mode.name}, language={target}")
        return config

    def _read(self) -> dict:
        try:
            with open(self.path, 'r', encoding='utf-8-sig') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Please set up the translator setting. ({self.path}: {e})") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid options file format. ({e})") from e

        if not isinstance(data, dict):
            raise ConfigError("Invalid options table format.")
        return data

    @staticmethod
    def _mode(value) -> TranslationMode:
        # bool is an int subclass; 'true' is not a mode
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError("translation mode not set.")
        try:
            return TranslationMode(value)
        except ValueError:
            raise ConfigError("translation mode not set.") from None

    @staticmethod
    def _language_index(value) -> Optional[int]:
        if value is None:
            return None
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"Invalid language option: {value!r}")
        return value

    @staticmethod
    def _required_str(data: dict, key: str, message: str) -> str:
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(message)
        return value.strip()
