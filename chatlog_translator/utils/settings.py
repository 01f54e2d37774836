import json
import logging
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_FILENAME = 'translator_config.json'


@dataclass
class AppSettings:
    """Process-level settings. Translation options live in the addon's options file."""
    addon_dir: str = './addons/ChatLogTranslator'
    log_dir: str = ''               # Empty: <addon_dir>/log
    options_file: str = ''          # Empty: <addon_dir>/options.yml
    icon_file: str = ''             # Empty: <addon_dir>/redria.ico
    poll_interval: float = 5.0      # Seconds between cycles
    host_window_title: str = 'Ephinea: Phantasy Star Online Blue Burst'
    instance_lock_name: str = 'TranslatorChatLogMutex'
    info_log_enabled: bool = True
    append_error_log: bool = False  # False: error marker holds only the latest failure
    deepl_url: str = 'https://api-free.deepl.com/v2/translate'
    apps_script_url: str = 'https://script.google.com/macros/s/'
    request_timeout: float = 30.0

    @property
    def log_path(self) -> Path:
        return Path(self.log_dir) if self.log_dir else Path(self.addon_dir) / 'log'

    @property
    def options_path(self) -> Path:
        return Path(self.options_file) if self.options_file else Path(self.addon_dir) / 'options.yml'

    @property
    def icon_path(self) -> Path:
        return Path(self.icon_file) if self.icon_file else Path(self.addon_dir) / 'redria.ico'


def default_config_path() -> Path:
    return Path.cwd() / CONFIG_FILENAME


def _coerce(default, value):
    """Match value to the type of the field default, or raise TypeError."""
    # bool is an int subclass; check it first
    if isinstance(default, bool) or isinstance(value, bool):
        if isinstance(default, bool) and isinstance(value, bool):
            return value
        raise TypeError(value)
    if isinstance(default, float) and isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, type(default)):
        return value
    raise TypeError(value)


def load_settings(config_path: Optional[Path] = None) -> AppSettings:
    """
    Load settings from JSON, merged over the defaults.
    Unknown keys and values of the wrong type are ignored; a broken file
    falls back to the defaults.
    """
    config_path = Path(config_path) if config_path else default_config_path()
    settings = AppSettings()

    if not config_path.exists():
        return settings

    try:
        with open(config_path, 'r', encoding='utf-8-sig') as f:
            loaded = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading config: {e}")
        return settings

    if not isinstance(loaded, dict):
        logger.error(f"Error loading config: {config_path} is not a JSON object")
        return settings

    known = {f.name for f in fields(AppSettings)}
    for key, value in loaded.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        try:
            value = _coerce(getattr(settings, key), value)
        except TypeError:
            logger.warning(f"Ignoring config key {key}: expected {type(getattr(settings, key)).__name__}, got {value!r}")
            continue
        setattr(settings, key, value)

    return settings


def save_settings(settings: AppSettings, config_path: Optional[Path] = None):
    config_path = Path(config_path) if config_path else default_config_path()
    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(asdict(settings), f, indent=2)
    except OSError as e:
        logger.error(f"Error saving config: {e}")
