"""
Gemini API 调用封装组件
管理与 Google Gemini API 的交互
"""
import os
import time
from typing import Any, Dict, Optional, Sequence

from google import genai
from google.genai import types

from infrastructure.config_loader import AppConfig
from infrastructure.log_manager import get_logger
from models.caption_model import KeyFrame
from services.errors import TransportError

DEFAULT_MODEL = "gemini-2.5-flash"


class GeminiService:
    """Gemini API 服务封装"""
    model_name: str
    api_key: Optional[str]
    timeout_seconds: float

    def __init__(self, api_key: Optional[str] = None, model_name: str = DEFAULT_MODEL,
                 timeout_seconds: float = 60.0, generation_config: Optional[Dict[str, Any]] = None,
                 client: Any = None):
        self.logger = get_logger("GeminiService")
        self.api_key = api_key or os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self._generation_config = generation_config or {}
        self._genai = client

        if self._genai is None:
            if not self.api_key:
                raise ValueError("API key is required")
            self._init_client()

    @classmethod
    def from_config(cls, config: AppConfig) -> 'GeminiService':
        return cls(
            api_key=config.api_key,
            model_name=config.model_name,
            timeout_seconds=config.timeout_seconds,
            generation_config=config.generation_config,
        )

    def _init_client(self):
        """初始化 Gemini 客户端"""
        try:
            self._genai = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
            self.logger.info(f"Gemini client initialized with model: {self.model_name}")
        except Exception as e:
            self.logger.error(f"Failed to initialize Gemini client: {e}")
            raise

    def generate_content(self, frames: Sequence[KeyFrame], text: str) -> str:
        """
        发送一次请求：按顺序排列的图像部分，后接一个文本部分

        Args:
            frames: 关键帧（可以为空，即纯文本请求）
            text: 文本提示词

        Returns:
            str: 响应文本，无文本时为空字符串

        Raises:
            TransportError: 网络错误、超时或 SDK 异常
        """
        parts = [types.Part.from_bytes(data=frame.image_bytes, mime_type=frame.mime_type) for frame in frames]
        parts.append(types.Part(text=text))

        self.logger.info(f"Calling Gemini API ({len(frames)} images, prompt: {text[:200]})")
        start_time = time.time()
        try:
            response = self._genai.models.generate_content(
                model=self.model_name,
                contents=parts,
                config=self._generation_config or None
            )
            text_out = response.text or ""
        except Exception as e:
            duration = time.time() - start_time
            self.logger.error(f"Gemini request failed after {duration:.2f}s: {e}")
            raise TransportError(f"Gemini request failed: {e}") from e

        duration = time.time() - start_time
        self.logger.info(f"Received response from Gemini API in {duration:.2f}s ({len(text_out)} chars)")
        return text_out
