from wslstack.services.settings.settings_store import SettingsStore

__all__ = ["SettingsStore"]
