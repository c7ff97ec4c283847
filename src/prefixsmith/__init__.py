"""PrefixSmith - vendor prefixing extension for text editors."""

__version__ = "0.1.0"

from .config import ConfigStore, Settings
from .extension import Activation, PrefixerExtension, activate, deactivate

__all__ = [
    "ConfigStore",
    "Settings",
    "Activation",
    "PrefixerExtension",
    "activate",
    "deactivate",
]
