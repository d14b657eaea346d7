"""
服务层异常定义
"""


class CaptionError(Exception):
    """字幕生成相关异常的基类"""


class ResourceError(CaptionError):
    """视频资源无法打开或读取"""


class TransportError(CaptionError):
    """模型调用失败（网络错误、超时、SDK 异常）"""


class PipelineCancelled(CaptionError):
    """流水线运行被取消"""
