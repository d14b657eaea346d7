"""
ViewModels 包 - 视图模型层
连接服务层和UI层，提供MVVM架构的ViewModel
"""

from .caption_viewmodel import CaptionViewModel

__all__ = [
    'CaptionViewModel',
]
