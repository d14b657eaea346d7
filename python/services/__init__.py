"""
Services 包 - 服务层
提供关键帧采样、模型请求和生成流水线
"""

from .errors import CaptionError, ResourceError, TransportError, PipelineCancelled
from .frame_sampler import FrameSampler, OpenCVFrameExtractor, compute_sample_timestamps
from .caption_service import CaptionService
from .caption_pipeline import CaptionPipeline, CancelToken

__all__ = [
    'CaptionError',
    'ResourceError',
    'TransportError',
    'PipelineCancelled',
    'FrameSampler',
    'OpenCVFrameExtractor',
    'compute_sample_timestamps',
    'CaptionService',
    'CaptionPipeline',
    'CancelToken',
]
