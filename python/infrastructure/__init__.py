"""
基础设施层
提供配置管理、日志管理等基础功能
"""

from .log_manager import LogManager, get_logger
from .config_loader import AppConfig, load_config

__all__ = [
    "LogManager",
    "get_logger",
    "AppConfig",
    "load_config",
]
