from .settings import LayoutDirection, ReexpansionMode, Settings, get_settings, settings

__all__ = ["LayoutDirection", "ReexpansionMode", "Settings", "get_settings", "settings"]
