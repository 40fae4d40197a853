"""
Utility Modules

Configuration loading.
"""

from warmline.utils.config import load_config, Config

__all__ = ["load_config", "Config"]
