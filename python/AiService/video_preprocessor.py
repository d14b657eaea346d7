"""
视频预处理组件
解析视频引用（路径或 URI）并验证视频文件格式
"""
import os
from typing import Optional
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from infrastructure.log_manager import get_logger


class VideoPreprocessor:
    """视频预处理器"""

    SUPPORTED_FORMATS = ['.mp4', '.mpeg', '.mov', '.avi', '.flv', '.mpg', '.webm', '.wmv', '.3gp', '.3gpp', '.mkv', '.m4v']
    REMOTE_SCHEMES = ('http', 'https', 'rtsp', 'rtmp')
    MAX_FILE_SIZE = 2 * 1024 * 1024 * 1024  # 2GB

    def __init__(self):
        self.logger = get_logger("VideoPreprocessor")

    @classmethod
    def is_remote(cls, video_uri: str) -> bool:
        return urlparse(video_uri).scheme.lower() in cls.REMOTE_SCHEMES

    def resolve_source(self, video_uri: str) -> str:
        """
        将视频引用转换为 OpenCV 可以打开的源

        Args:
            video_uri: 本地路径、file:// URI 或网络地址

        Returns:
            str: 本地文件路径或原样的网络地址
        """
        if not video_uri:
            raise ValueError("Video reference is empty")

        parsed = urlparse(video_uri)
        if parsed.scheme.lower() == 'file':
            return url2pathname(unquote(parsed.path))
        return video_uri

    def validate_video(self, video_uri: Optional[str]) -> bool:
        """验证视频引用"""
        if not video_uri:
            self.logger.warning("No video reference provided")
            return False

        if self.is_remote(video_uri):
            return True

        video_path = self.resolve_source(video_uri)
        if not os.path.exists(video_path):
            self.logger.warning(f"Video file not found: {video_path}")
            return False

        file_size = os.path.getsize(video_path)
        if file_size > self.MAX_FILE_SIZE:
            self.logger.warning(f"Video file too large: {file_size} bytes")
            return False

        ext = os.path.splitext(video_path)[1].lower()
        if ext not in self.SUPPORTED_FORMATS:
            self.logger.warning(f"Unsupported format: {ext}")
            return False

        return True

