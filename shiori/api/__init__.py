# SHIORI API Module
"""
shiori.api - Python API (configuration and component wiring)
"""

from shiori.api.base import EngineBackend, SearchSettings, ShioriConfig
from shiori.api.config import ConfigManager, load_config
from shiori.api.factory import ComponentFactory, create_indexing_service

__all__ = [
    # Enums
    "EngineBackend",
    # Data Classes
    "SearchSettings",
    "ShioriConfig",
    # Config
    "ConfigManager",
    "load_config",
    # Factory
    "ComponentFactory",
    "create_indexing_service",
]
