"""
字幕与话题标签请求服务
组合提示词构建、模型调用和响应解析
"""
from typing import Optional, Protocol, Sequence

from AiService.prompt_builder import PromptBuilder
from AiService.response_parser import ResponseParser
from infrastructure.log_manager import get_logger
from models.caption_model import KeyFrame, Mood


class ContentModel(Protocol):
    """生成模型接口（GeminiService 实现此接口）"""

    def generate_content(self, frames: Sequence[KeyFrame], text: str) -> str:
        ...


class CaptionService:
    """字幕/话题标签请求器，每次调用只发起一次请求，不重试"""

    def __init__(self, model: ContentModel, prompt_builder: Optional[PromptBuilder] = None,
                 parser: Optional[ResponseParser] = None):
        self.logger = get_logger("CaptionService")
        self._model = model
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser or ResponseParser()

    def request_caption(self, frames: Sequence[KeyFrame], description: str, mood: Mood) -> str:
        """
        请求字幕

        Args:
            frames: 按时间升序排列的关键帧，不能为空
            description: 视频描述
            mood: 情绪

        Returns:
            str: 模型返回的原始文本，空字符串表示失败

        Raises:
            ValueError: frames 为空
            TransportError: 模型调用失败
        """
        if not frames:
            raise ValueError("At least one keyframe is required to request a caption")
        prompt = self.prompt_builder.build_caption_prompt(description, mood)
        self.logger.info(f"Requesting caption with {len(frames)} keyframes")
        return self.parser.parse_caption(self._model.generate_content(list(frames), prompt))

    def request_hashtag(self, description: str, mood: Mood) -> str:
        """请求话题标签，返回响应中的第一个词"""
        prompt = self.prompt_builder.build_hashtag_prompt(description, mood)
        self.logger.info("Requesting hashtag")
        return self.parser.parse_hashtag(self._model.generate_content([], prompt))
