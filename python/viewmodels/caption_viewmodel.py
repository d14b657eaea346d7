"""
字幕生成视图模型
负责视频字幕界面的状态管理和UI交互
"""
import os
import threading
from typing import Optional

from PySide6.QtCore import QObject, QUrl, Signal, Slot, Property

from AiService.video_preprocessor import VideoPreprocessor
from infrastructure.log_manager import get_logger
from models.caption_model import CaptionSession, FailureReason, Mood, PipelineResult, PipelineState
from services.caption_pipeline import CaptionPipeline, CancelToken


class CaptionViewModel(QObject):
    """
    字幕生成视图模型
    连接 CaptionPipeline 与 QML 界面
    """

    # ========== 信号定义 ==========
    # 输入信号
    descriptionChanged = Signal(str)
    moodIndexChanged = Signal(int)

    # 输出信号
    captionChanged = Signal(str)
    hashtagChanged = Signal(str)

    # 状态信号
    isGeneratingChanged = Signal(bool)
    stateChanged = Signal(str)

    # 提示信号 (原因名称, 提示消息)
    noticeRaised = Signal(str, str)
    errorOccurred = Signal(str)

    closeRequested = Signal()

    def __init__(self, pipeline: CaptionPipeline, video_uri: Optional[str] = None,
                 run_in_background: bool = True, parent=None):
        """
        初始化视图模型

        Args:
            pipeline: 生成流水线
            video_uri: 启动时传入的视频引用，整个界面生命周期内不变
            run_in_background: 是否在后台线程执行流水线
            parent: 父对象
        """
        super().__init__(parent)
        self.logger = get_logger("CaptionViewModel")
        self._pipeline = pipeline
        self._preprocessor = VideoPreprocessor()
        self._video_uri = video_uri or None
        self._run_in_background = run_in_background

        # 输入状态
        self._description = ""
        self._mood = Mood.default()

        # 输出状态
        self._caption = ""
        self._hashtag = ""
        self._state = PipelineState.IDLE
        self._is_generating = False
        self._last_result: Optional[PipelineResult] = None

        # 运行控制
        self._lock = threading.Lock()
        self._cancel_token: Optional[CancelToken] = None
        self._worker: Optional[threading.Thread] = None

        # 设置流水线回调
        self._pipeline.add_state_callback(self._on_state_changed)
        self._pipeline.add_caption_callback(self._on_caption)
        self._pipeline.add_hashtag_callback(self._on_hashtag)

        self.logger.info("CaptionViewModel initialized")

    @Slot()
    def initialize(self):
        """界面加载完成后调用"""
        if not self._video_uri:
            self._raise_notice(FailureReason.NO_VIDEO)
            return
        if not self._preprocessor.validate_video(self._video_uri):
            self.logger.warning(f"Video may not be playable: {self._video_uri}")

    # ========== 流水线回调（在工作线程中调用） ==========
    def _is_current_run_cancelled(self) -> bool:
        token = self._cancel_token
        return token is not None and token.is_cancelled

    def _on_state_changed(self, state: PipelineState):
        self._state = state
        self.stateChanged.emit(state.value)

    def _on_caption(self, caption: str):
        if self._is_current_run_cancelled():
            return
        self._caption = caption
        self.captionChanged.emit(caption)

    def _on_hashtag(self, hashtag: str):
        if self._is_current_run_cancelled():
            return
        self._hashtag = hashtag
        self.hashtagChanged.emit(hashtag)

    # ========== 操作 ==========
    @Slot()
    def generateCaptions(self):
        """开始生成字幕和话题标签"""
        with self._lock:
            if self._is_generating:
                self.logger.warning("Generation already in progress")
                self._raise_notice(FailureReason.ALREADY_RUNNING)
                return

            session = CaptionSession(
                video_uri=self._video_uri,
                description=self._description,
                mood=self._mood
            )
            reason = self._pipeline.check_inputs(session)
            if reason is not None:
                self._raise_notice(reason)
                return

            token = CancelToken()
            self._cancel_token = token
            self._set_generating(True)

        if self._run_in_background:
            self._worker = threading.Thread(
                target=self._run_pipeline,
                args=(session, token),
                name="CaptionPipelineWorker",
                daemon=True
            )
            self._worker.start()
        else:
            self._run_pipeline(session, token)

    def _run_pipeline(self, session: CaptionSession, token: CancelToken):
        """执行流水线并把失败原因转换为提示"""
        try:
            result = self._pipeline.run(session, token)
            self._last_result = result
            if result.failure is not None and result.state != PipelineState.CANCELLED:
                self._raise_notice(result.failure)
        except Exception as e:
            self.logger.error(f"Caption pipeline crashed: {e}")
            self.errorOccurred.emit(f"Caption generation error: {e}")
        finally:
            with self._lock:
                self._set_generating(False)

    @Slot()
    def cancel(self):
        """取消当前运行，迟到的结果会被丢弃"""
        token = self._cancel_token
        if token is not None and not token.is_cancelled:
            self.logger.info("Cancelling in-flight generation")
            token.cancel()

    @Slot()
    def close(self):
        """返回按钮：取消运行并关闭界面"""
        self.cancel()
        self.closeRequested.emit()

    def _set_generating(self, value: bool):
        if self._is_generating != value:
            self._is_generating = value
            self.isGeneratingChanged.emit(value)

    def _raise_notice(self, reason: FailureReason):
        self.logger.info(f"Notice: {reason.message}")
        self.noticeRaised.emit(reason.name, reason.message)

    @property
    def last_result(self) -> Optional[PipelineResult]:
        return self._last_result

    # ========== 属性 ==========
    @Property(str, constant=True)
    def videoUrl(self):
        """供 QML 播放器使用的 URL"""
        if not self._video_uri:
            return ""
        if self._preprocessor.is_remote(self._video_uri) or self._video_uri.startswith("file:"):
            return self._video_uri
        return QUrl.fromLocalFile(os.path.abspath(self._video_uri)).toString()

    @Property(bool, constant=True)
    def hasVideo(self):
        return bool(self._video_uri)

    @Property(list, constant=True)
    def moods(self):
        return Mood.labels()

    @Property(int, notify=moodIndexChanged)
    def moodIndex(self):
        return list(Mood).index(self._mood)

    @moodIndex.setter
    def moodIndex(self, value):
        try:
            mood = Mood.from_index(value)
        except ValueError as e:
            self.logger.warning(str(e))
            return
        if mood != self._mood:
            self._mood = mood
            self.moodIndexChanged.emit(value)

    @Slot(int)
    def setMoodIndex(self, value):
        self.moodIndex = value

    @Property(str, notify=descriptionChanged)
    def description(self):
        return self._description

    @description.setter
    def description(self, value):
        if self._description != value:
            self._description = value
            self.descriptionChanged.emit(value)

    @Slot(str)
    def setDescription(self, value):
        self.description = value

    @Property(str, notify=captionChanged)
    def caption(self):
        return self._caption

    @Property(str, notify=hashtagChanged)
    def hashtag(self):
        return self._hashtag

    @Property(bool, notify=isGeneratingChanged)
    def isGenerating(self):
        return self._is_generating

    @Property(str, notify=stateChanged)
    def state(self):
        return self._state.value
