"""
响应解析组件
从 Gemini API 返回的文本中提取字幕与话题标签
"""
from typing import Optional

from infrastructure.log_manager import get_logger


def extract_hashtag(response_text: Optional[str]) -> str:
    """取响应文本中第一个以空白分隔的词，无文本时返回空字符串"""
    if not response_text:
        return ""
    tokens = response_text.split()
    return tokens[0] if tokens else ""


def is_empty_caption(caption: Optional[str]) -> bool:
    """空白字幕视为生成失败"""
    return not caption or not caption.strip()


class ResponseParser:
    """Gemini 响应解析器"""

    def __init__(self):
        self.logger = get_logger("ResponseParser")

    def parse_caption(self, response_text: Optional[str]) -> str:
        """字幕原样返回，None 视为空字符串"""
        if response_text is None:
            self.logger.warning("Caption response contained no text")
            return ""
        return response_text

    def parse_hashtag(self, response_text: Optional[str]) -> str:
        hashtag = extract_hashtag(response_text)
        if not hashtag:
            self.logger.warning("Hashtag response contained no text")
        elif not hashtag.startswith("#"):
            self.logger.debug(f"Hashtag token has no leading '#': {hashtag}")
        return hashtag
