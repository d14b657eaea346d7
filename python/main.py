"""
Video Caption Generator - 主程序入口
采用 MVVM 架构：QML 负责界面，Python 负责业务逻辑
"""
import sys
from pathlib import Path

# 添加项目根目录到 Python 路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(Path(__file__).parent))

import argparse
import os

from dotenv import load_dotenv
from PySide6.QtWidgets import QApplication
from PySide6.QtQml import QQmlApplicationEngine
from PySide6.QtCore import QUrl

from infrastructure.config_loader import DEFAULT_CONFIG_PATH, load_config
from infrastructure.log_manager import LogManager
from services.caption_pipeline import CaptionPipeline
from viewmodels.caption_viewmodel import CaptionViewModel


def parse_args(argv):
    """解析命令行参数"""
    parser = argparse.ArgumentParser(description="Play a video and generate a caption and hashtag for it.")
    parser.add_argument("video", nargs="?", default=None, help="视频文件路径或 URI")
    parser.add_argument("--config", default=str(project_root / DEFAULT_CONFIG_PATH), help="配置文件路径")
    args, _ = parser.parse_known_args(argv)
    return args


def main(argv=None):
    """主函数"""
    argv = sys.argv if argv is None else argv
    args = parse_args(argv[1:])

    print("=" * 70)
    print("Video Caption Generator - MVVM Architecture")
    print("=" * 70)

    # 1. 加载环境变量与配置
    load_dotenv(project_root / ".env")
    try:
        config = load_config(args.config)
    except ValueError as e:
        print(f"❌ Error: {e}")
        return -1
    LogManager(log_file=config.log_file, level=config.log_level)

    # 2. 创建 Qt 应用
    app = QApplication(argv)
    app.setApplicationName("Video Caption Generator")

    # 3. 创建流水线和 ViewModel
    try:
        pipeline = CaptionPipeline.from_config(config)
    except ValueError as e:
        print(f"❌ Error: {e} (set GOOGLE_API_KEY in the environment or .env)")
        return -1
    caption_viewmodel = CaptionViewModel(pipeline, video_uri=args.video)

    # 4. 将 ViewModel 注入到 QML 上下文
    engine = QQmlApplicationEngine()
    engine.rootContext().setContextProperty("captionViewModel", caption_viewmodel)

    views_path = Path(__file__).parent / "views"
    engine.addImportPath(str(views_path))
    os.environ.setdefault("QT_QUICK_CONTROLS_STYLE", "Material")

    # 5. 加载 QML 文件
    qml_file = views_path / "main.qml"
    if not qml_file.exists():
        print(f"❌ Error: QML file not found: {qml_file}")
        return -1

    engine.load(QUrl.fromLocalFile(str(qml_file)))
    if not engine.rootObjects():
        print("❌ Error: Failed to load QML file")
        return -1

    # 6. 初始化 ViewModel，退出时取消未完成的请求
    caption_viewmodel.initialize()
    caption_viewmodel.closeRequested.connect(app.quit)
    app.aboutToQuit.connect(caption_viewmodel.cancel)

    print(f"\n✅ Application started: {args.video or '(no video)'}")
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
