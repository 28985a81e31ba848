"""Detection tables, runtime settings and config file loading."""

from .constants import (
    AI_BOT_SIGNATURES,
    DEFAULT_RATE,
    HEURISTIC_KEYWORDS,
    MONETIZATION_CONFIDENCE_THRESHOLD,
    SUSPICIOUS_PATTERNS,
    BotSignature,
)
from .settings import Settings, clear_settings_cache, get_settings
from .sops_loader import decrypt_sops_file, load_yaml_file

__all__ = [
    "AI_BOT_SIGNATURES",
    "BotSignature",
    "SUSPICIOUS_PATTERNS",
    "HEURISTIC_KEYWORDS",
    "MONETIZATION_CONFIDENCE_THRESHOLD",
    "DEFAULT_RATE",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "load_yaml_file",
    "decrypt_sops_file",
]
