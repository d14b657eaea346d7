"""
Prompt 构建组件
构建用于 Gemini API 的字幕与话题标签提示词
"""
from models.caption_model import Mood

CAPTION_TEMPLATE = "Generate a caption for the following video description with a {mood} mood: {description}"
HASHTAG_TEMPLATE = "Generate a single hashtag for the following video description with a {mood} mood: {description}"
MOOD_SUFFIX = " with a {mood} mood"


def build_caption_prompt(description: str, mood: Mood, repeat_mood: bool = True) -> str:
    """
    构建字幕提示词

    Args:
        description: 用户输入的视频描述
        mood: 情绪
        repeat_mood: 是否在末尾再追加一次情绪短语

    Returns:
        str: 与关键帧一同发送的文本部分
    """
    prompt = CAPTION_TEMPLATE.format(mood=mood.value, description=description)
    if repeat_mood:
        prompt += MOOD_SUFFIX.format(mood=mood.value)
    return prompt


def build_hashtag_prompt(description: str, mood: Mood) -> str:
    """构建话题标签提示词（纯文本请求）"""
    return HASHTAG_TEMPLATE.format(mood=mood.value, description=description)


class PromptBuilder:
    """提示词构建器"""

    def __init__(self, repeat_mood_in_caption: bool = True):
        self.repeat_mood_in_caption = repeat_mood_in_caption

    def build_caption_prompt(self, description: str, mood: Mood) -> str:
        return build_caption_prompt(description, mood, repeat_mood=self.repeat_mood_in_caption)

    def build_hashtag_prompt(self, description: str, mood: Mood) -> str:
        return build_hashtag_prompt(description, mood)
