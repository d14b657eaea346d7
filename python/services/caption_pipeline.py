"""
字幕生成流水线
按顺序执行：关键帧采样 -> 字幕请求 -> 话题标签请求
"""
import threading
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from AiService.prompt_builder import PromptBuilder
from AiService.response_parser import is_empty_caption
from AiService.video_preprocessor import VideoPreprocessor
from infrastructure.config_loader import AppConfig
from infrastructure.log_manager import get_logger
from models.caption_model import (
    CaptionSession,
    FailureReason,
    KeyFrame,
    PipelineResult,
    PipelineState,
)
from services.caption_service import CaptionService
from services.errors import PipelineCancelled, ResourceError, TransportError
from services.frame_sampler import FrameSampler


class CancelToken:
    """取消令牌"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise PipelineCancelled("Caption pipeline cancelled")


class CaptionPipeline:
    """
    字幕生成流水线

    每次 run() 从 IDLE 开始，结果只保存在返回的 PipelineResult 中。
    字幕失败会中止流水线，话题标签失败只得到空字符串。
    """

    def __init__(self, frame_sampler: FrameSampler, caption_service: CaptionService,
                 preprocessor: Optional[VideoPreprocessor] = None):
        self.logger = get_logger("CaptionPipeline")
        self._sampler = frame_sampler
        self._caption_service = caption_service
        self._preprocessor = preprocessor or VideoPreprocessor()

        # 回调函数
        self._state_callbacks: List[Callable[[PipelineState], None]] = []
        self._caption_callbacks: List[Callable[[str], None]] = []
        self._hashtag_callbacks: List[Callable[[str], None]] = []

    @classmethod
    def from_config(cls, config: AppConfig) -> 'CaptionPipeline':
        """根据应用配置创建流水线（使用 Gemini 与 OpenCV）"""
        from services.gemini_service import GeminiService

        model = GeminiService.from_config(config)
        caption_service = CaptionService(
            model,
            prompt_builder=PromptBuilder(repeat_mood_in_caption=config.repeat_mood_in_caption)
        )
        sampler = FrameSampler(sample_count=config.sample_count, jpeg_quality=config.jpeg_quality)
        return cls(sampler, caption_service)

    def add_state_callback(self, callback: Callable[[PipelineState], None]):
        self._state_callbacks.append(callback)

    def add_caption_callback(self, callback: Callable[[str], None]):
        self._caption_callbacks.append(callback)

    def add_hashtag_callback(self, callback: Callable[[str], None]):
        self._hashtag_callbacks.append(callback)

    def check_inputs(self, session: CaptionSession) -> Optional[FailureReason]:
        """
        输入校验，返回 None 表示可以开始生成

        缺少视频和描述为空都提示输入描述，NO_VIDEO 只在界面初始化时提示
        """
        if not session.has_video or not session.has_description:
            return FailureReason.MISSING_DESCRIPTION
        return None

    def run(self, session: CaptionSession, cancel_token: Optional[CancelToken] = None) -> PipelineResult:
        """
        执行一次完整的生成流程（阻塞，应在后台线程调用）

        Args:
            session: 输入快照
            cancel_token: 可选的取消令牌

        Returns:
            PipelineResult: 终止状态、字幕、话题标签和失败原因
        """
        token = cancel_token or CancelToken()
        result = PipelineResult(run_id=str(uuid.uuid4()), started_at=datetime.now())
        self._set_state(result, PipelineState.IDLE)

        reason = self.check_inputs(session)
        if reason is not None:
            self.logger.warning(f"Generation rejected: {reason.message}")
            result.failure = reason
            result.finished_at = datetime.now()
            return result

        try:
            # 1. 关键帧采样
            self._set_state(result, PipelineState.SAMPLING)
            frames = self._sample(session, token)
            result.keyframe_count = len(frames)
            token.raise_if_cancelled()
            if not frames:
                return self._fail(result, FailureReason.NO_KEYFRAMES)

            # 2. 字幕请求
            self._set_state(result, PipelineState.REQUESTING_CAPTION)
            caption = self._request_caption(frames, session)
            token.raise_if_cancelled()
            if is_empty_caption(caption):
                return self._fail(result, FailureReason.CAPTION_FAILED)
            result.caption = caption
            self._notify(self._caption_callbacks, caption, "caption")

            # 3. 话题标签请求
            self._set_state(result, PipelineState.REQUESTING_HASHTAG)
            hashtag = self._request_hashtag(session)
            token.raise_if_cancelled()
            result.hashtag = hashtag
            self._notify(self._hashtag_callbacks, hashtag, "hashtag")

            self._set_state(result, PipelineState.DONE)
        except PipelineCancelled:
            self.logger.info(f"Run {result.run_id} cancelled")
            self._set_state(result, PipelineState.CANCELLED)
        finally:
            result.finished_at = datetime.now()

        return result

    def _sample(self, session: CaptionSession, token: CancelToken) -> List[KeyFrame]:
        try:
            source = self._preprocessor.resolve_source(session.video_uri)
            return self._sampler.sample(source, should_stop=token.raise_if_cancelled)
        except ResourceError as e:
            self.logger.error(f"Frame extraction failed: {e}")
            return []
        except PipelineCancelled:
            raise
        except Exception as e:
            self.logger.error(f"Unexpected error during frame extraction: {e}")
            return []

    def _request_caption(self, frames: List[KeyFrame], session: CaptionSession) -> str:
        try:
            return self._caption_service.request_caption(frames, session.description, session.mood)
        except TransportError as e:
            self.logger.error(f"Caption request failed: {e}")
            return ""

    def _request_hashtag(self, session: CaptionSession) -> str:
        try:
            return self._caption_service.request_hashtag(session.description, session.mood)
        except TransportError as e:
            self.logger.warning(f"Hashtag request failed, showing empty hashtag: {e}")
            return ""

    def _fail(self, result: PipelineResult, reason: FailureReason) -> PipelineResult:
        self.logger.warning(f"Run {result.run_id} failed: {reason.message}")
        result.failure = reason
        self._set_state(result, PipelineState.FAILED)
        return result

    def _set_state(self, result: PipelineResult, state: PipelineState):
        result.state = state
        result.state_history.append(state)
        self.logger.info(f"Run {result.run_id[:8]} -> {state.name}")
        self._notify(self._state_callbacks, state, "state")

    def _notify(self, callbacks: list, value, kind: str):
        for callback in callbacks:
            try:
                callback(value)
            except Exception as e:
                self.logger.error(f"Error in {kind} callback: {e}")
