"""
关键帧采样服务
按视频时长均匀计算采样时间点，并通过 OpenCV 提取对应帧
"""
import math
from typing import Callable, List, Optional, Protocol

import cv2

from infrastructure.log_manager import get_logger
from models.caption_model import KeyFrame
from services.errors import ResourceError

DEFAULT_SAMPLE_COUNT = 10


def compute_sample_timestamps(duration_ms: int, sample_count: int = DEFAULT_SAMPLE_COUNT) -> List[int]:
    """
    计算均匀分布的采样时间点

    Args:
        duration_ms: 视频时长（毫秒），缺失或非正数按 0 处理
        sample_count: 采样数量

    Returns:
        List[int]: 单调不减的时间点列表（毫秒），长度等于 sample_count
    """
    if sample_count <= 0:
        raise ValueError(f"sample_count must be positive: {sample_count}")
    duration_ms = max(0, int(duration_ms or 0))
    interval = duration_ms // sample_count
    return [i * interval for i in range(sample_count)]


class FrameExtractor(Protocol):
    """帧提取器接口"""

    def duration_ms(self) -> int:
        ...

    def frame_at(self, time_us: int) -> Optional[bytes]:
        ...

    def release(self) -> None:
        ...


class OpenCVFrameExtractor:
    """基于 cv2.VideoCapture 的帧提取器，输出 JPEG 编码图像"""

    def __init__(self, source: str, jpeg_quality: int = 85):
        self.logger = get_logger("OpenCVFrameExtractor")
        self._source = source
        self._jpeg_quality = jpeg_quality
        self._capture = cv2.VideoCapture(source)
        if not self._capture.isOpened():
            self._capture.release()
            raise ResourceError(f"Could not open video source: {source}")

    def duration_ms(self) -> int:
        """由帧数和帧率推算时长，元数据缺失时返回 0"""
        fps = self._capture.get(cv2.CAP_PROP_FPS)
        frame_count = self._capture.get(cv2.CAP_PROP_FRAME_COUNT)
        if not math.isfinite(fps) or not math.isfinite(frame_count) or fps <= 0 or frame_count <= 0:
            self.logger.warning(f"Missing duration metadata for {self._source}")
            return 0
        return int(frame_count / fps * 1000)

    def frame_at(self, time_us: int) -> Optional[bytes]:
        """定位到给定时间（微秒）之前最近的可解码帧并编码为 JPEG"""
        try:
            # 精确定位：后端从前一个同步点向前解码到目标帧，比只取同步点慢但时间点准确
            self._capture.set(cv2.CAP_PROP_POS_MSEC, time_us / 1000.0)
            ok, frame = self._capture.read()
            if not ok or frame is None:
                return None
            ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, self._jpeg_quality])
        except cv2.error as e:
            self.logger.warning(f"Frame extraction failed at {time_us}us: {e}")
            return None
        if not ok:
            return None
        return buffer.tobytes()

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


class FrameSampler:
    """关键帧采样器"""

    def __init__(
        self,
        extractor_factory: Optional[Callable[[str], FrameExtractor]] = None,
        sample_count: int = DEFAULT_SAMPLE_COUNT,
        jpeg_quality: int = 85
    ):
        """
        初始化采样器

        Args:
            extractor_factory: 根据视频源创建帧提取器，默认使用 OpenCV
            sample_count: 每次采样的帧数
            jpeg_quality: 默认提取器的 JPEG 质量
        """
        if sample_count <= 0:
            raise ValueError(f"sample_count must be positive: {sample_count}")
        self.logger = get_logger("FrameSampler")
        self.sample_count = sample_count
        self._extractor_factory = extractor_factory or (
            lambda source: OpenCVFrameExtractor(source, jpeg_quality=jpeg_quality)
        )

    def sample(self, video_source: str, should_stop: Optional[Callable[[], None]] = None) -> List[KeyFrame]:
        """
        对视频进行一次采样

        Args:
            video_source: OpenCV 可打开的视频源
            should_stop: 每次提取前调用，用于响应取消（通过抛出异常中止）

        Returns:
            List[KeyFrame]: 按时间升序排列的关键帧，失败的时间点被跳过

        Raises:
            ResourceError: 视频源无法打开
        """
        extractor = self._extractor_factory(video_source)
        try:
            duration = self._read_duration(extractor)
            timestamps = compute_sample_timestamps(duration, self.sample_count)
            self.logger.debug(f"Sampling {video_source}: duration={duration}ms timestamps={timestamps}")

            frames: List[KeyFrame] = []
            for index, timestamp_ms in enumerate(timestamps):
                if should_stop is not None:
                    should_stop()
                image = extractor.frame_at(timestamp_ms * 1000)
                if image is None:
                    self.logger.debug(f"No frame at {timestamp_ms}ms, skipped")
                    continue
                frames.append(KeyFrame(index=index, timestamp_ms=timestamp_ms, image_bytes=image))

            self.logger.info(f"Extracted {len(frames)}/{len(timestamps)} keyframes")
            return frames
        finally:
            extractor.release()

    def _read_duration(self, extractor: FrameExtractor) -> int:
        duration = extractor.duration_ms()
        if duration is None or duration < 0:
            return 0
        return int(duration)
