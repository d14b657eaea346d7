"""
配置加载组件
读取 JSON 配置文件，使用 jsonschema 校验，并合并环境变量
"""
import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
from dotenv import load_dotenv

from infrastructure.log_manager import get_logger

DEFAULT_CONFIG_PATH = "configs/caption_config.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "model": {"name": "gemini-2.5-flash"},
    "generation_config": {},
    "request": {"timeout_seconds": 60},
    "sampling": {"sample_count": 10, "jpeg_quality": 85},
    "prompts": {"repeat_mood_in_caption": True},
    "logging": {"file": "logs/video_caption.log", "level": "INFO"},
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "model": {
            "type": "object",
            "properties": {"name": {"type": "string", "minLength": 1}},
        },
        "generation_config": {"type": "object"},
        "request": {
            "type": "object",
            "properties": {"timeout_seconds": {"type": "number", "exclusiveMinimum": 0}},
        },
        "sampling": {
            "type": "object",
            "properties": {
                "sample_count": {"type": "integer", "minimum": 1},
                "jpeg_quality": {"type": "integer", "minimum": 1, "maximum": 100},
            },
        },
        "prompts": {
            "type": "object",
            "properties": {"repeat_mood_in_caption": {"type": "boolean"}},
        },
        "logging": {
            "type": "object",
            "properties": {
                "file": {"type": "string"},
                "level": {"enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
            },
        },
    },
}


@dataclass
class AppConfig:
    """应用配置"""
    model_name: str = DEFAULT_CONFIG["model"]["name"]
    api_key: Optional[str] = None
    timeout_seconds: float = DEFAULT_CONFIG["request"]["timeout_seconds"]
    sample_count: int = DEFAULT_CONFIG["sampling"]["sample_count"]
    jpeg_quality: int = DEFAULT_CONFIG["sampling"]["jpeg_quality"]
    repeat_mood_in_caption: bool = DEFAULT_CONFIG["prompts"]["repeat_mood_in_caption"]
    generation_config: Dict[str, Any] = field(default_factory=dict)
    log_file: str = DEFAULT_CONFIG["logging"]["file"]
    log_level: str = DEFAULT_CONFIG["logging"]["level"]


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """递归合并两个配置字典，override 优先"""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: str = DEFAULT_CONFIG_PATH, env_file: Optional[str] = None) -> AppConfig:
    """
    加载应用配置

    Args:
        config_path: JSON 配置文件路径，不存在时使用默认值
        env_file: 可选的 .env 文件路径

    Returns:
        AppConfig: 合并后的配置

    Raises:
        ValueError: 配置文件内容不合法
    """
    logger = get_logger("ConfigLoader")
    if env_file:
        load_dotenv(env_file)

    raw: Dict[str, Any] = {}
    path = Path(config_path)
    if path.exists():
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {path}: {e}") from e
        try:
            jsonschema.validate(instance=raw, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            location = '.'.join(str(p) for p in e.path) or "<root>"
            raise ValueError(f"Config validation failed at '{location}': {e.message}") from e
        logger.info(f"Loaded config from {path}")
    else:
        logger.warning(f"Config file not found: {path}, using defaults")

    data = _merge(DEFAULT_CONFIG, raw)

    return AppConfig(
        model_name=os.getenv("VIDEO_CAPTION_MODEL") or data["model"]["name"],
        api_key=os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY"),
        timeout_seconds=float(data["request"]["timeout_seconds"]),
        sample_count=int(data["sampling"]["sample_count"]),
        jpeg_quality=int(data["sampling"]["jpeg_quality"]),
        repeat_mood_in_caption=bool(data["prompts"]["repeat_mood_in_caption"]),
        generation_config=dict(data["generation_config"]),
        log_file=data["logging"]["file"],
        log_level=data["logging"]["level"],
    )
