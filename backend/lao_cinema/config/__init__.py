"""
Runtime configuration loaded from the environment.
"""

from lao_cinema.config.settings import AccessConfig, get_access_config, load_access_config

__all__ = ["AccessConfig", "get_access_config", "load_access_config"]
