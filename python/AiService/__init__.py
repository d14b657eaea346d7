"""
AiService 包 - AI服务层
提供视频引用预处理、响应解析和提示词构建功能
"""

from .video_preprocessor import VideoPreprocessor
from .response_parser import ResponseParser, extract_hashtag
from .prompt_builder import PromptBuilder, build_caption_prompt, build_hashtag_prompt

__all__ = [
    'VideoPreprocessor',
    'ResponseParser',
    'extract_hashtag',
    'PromptBuilder',
    'build_caption_prompt',
    'build_hashtag_prompt',
]
