"""
Models 包 - 数据模型层
定义应用中使用的数据结构
"""

from .caption_model import (
    Mood,
    KeyFrame,
    CaptionSession,
    PipelineState,
    FailureReason,
    PipelineResult,
)

__all__ = [
    'Mood',
    'KeyFrame',
    'CaptionSession',
    'PipelineState',
    'FailureReason',
    'PipelineResult',
]
