"""
字幕生成数据模型
定义会话、关键帧、运行状态和失败原因等数据结构
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Mood(str, Enum):
    """字幕情绪（固定集合，默认取第一个）"""
    HAPPY = "Happy"
    SAD = "Sad"
    EXCITED = "Excited"
    CALM = "Calm"
    ANGRY = "Angry"

    @classmethod
    def default(cls) -> 'Mood':
        return list(cls)[0]

    @classmethod
    def labels(cls) -> List[str]:
        """供选择器展示的情绪名称列表"""
        return [mood.value for mood in cls]

    @classmethod
    def from_index(cls, index: int) -> 'Mood':
        moods = list(cls)
        if 0 <= index < len(moods):
            return moods[index]
        raise ValueError(f"Mood index out of range: {index}")

    @classmethod
    def parse(cls, text: str) -> 'Mood':
        """按名称解析（不区分大小写）"""
        for mood in cls:
            if mood.value.lower() == text.strip().lower():
                return mood
        raise ValueError(f"Unknown mood: {text}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class KeyFrame:
    """关键帧数据类"""
    index: int
    timestamp_ms: int
    image_bytes: bytes
    mime_type: str = "image/jpeg"


@dataclass(frozen=True)
class CaptionSession:
    """一次生成请求的输入快照"""
    video_uri: Optional[str]
    description: str = ""
    mood: Mood = Mood.HAPPY

    @property
    def has_video(self) -> bool:
        return bool(self.video_uri)

    @property
    def has_description(self) -> bool:
        return bool(self.description and self.description.strip())


class PipelineState(Enum):
    """流水线状态"""
    IDLE = "idle"
    SAMPLING = "sampling"
    REQUESTING_CAPTION = "requesting_caption"
    REQUESTING_HASHTAG = "requesting_hashtag"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.DONE, PipelineState.FAILED, PipelineState.CANCELLED)


class FailureReason(Enum):
    """面向界面的失败原因，每个原因对应一条提示消息"""
    NO_VIDEO = ("InputError", "No video selected")
    MISSING_DESCRIPTION = ("InputError", "Please enter a description of the video")
    NO_KEYFRAMES = ("ExtractionError", "No keyframes extracted")
    CAPTION_FAILED = ("ModelResponseEmpty", "Failed to generate captions")
    ALREADY_RUNNING = ("InputError", "Caption generation already in progress")

    @property
    def category(self) -> str:
        return self.value[0]

    @property
    def message(self) -> str:
        return self.value[1]


@dataclass
class PipelineResult:
    """单次流水线运行结果"""
    run_id: str
    started_at: datetime
    state: PipelineState = PipelineState.IDLE
    caption: str = ""
    hashtag: str = ""
    keyframe_count: int = 0
    failure: Optional[FailureReason] = None
    finished_at: Optional[datetime] = None
    state_history: List[PipelineState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.DONE

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "run_id": self.run_id,
            "state": self.state.value,
            "caption": self.caption,
            "hashtag": self.hashtag,
            "keyframe_count": self.keyframe_count,
            "failure": self.failure.name if self.failure else None,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
