from .settings import AppConfig, LogLocation, load_config, resolve_storage_root

__all__ = [
    'AppConfig',
    'LogLocation',
    'load_config',
    'resolve_storage_root',
]
