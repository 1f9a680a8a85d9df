from .hooks import HookSettings, SlotSettings
from .logging import LoggingSettings
from .settings import GatewaySettings, Settings, load_settings


__all__ = [
    "GatewaySettings",
    "HookSettings",
    "LoggingSettings",
    "Settings",
    "SlotSettings",
    "load_settings",
]
