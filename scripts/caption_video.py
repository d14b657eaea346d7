#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
独立的字幕生成脚本
无需启动界面，直接对视频运行采样 + 字幕 + 话题标签流程

使用方法:
    python scripts/caption_video.py --video "D:\\Videos\\dog.mp4" --description "a dog running" --mood Calm

参数:
    --video        视频文件路径或 URI（必需）
    --description  视频描述（必需）
    --mood         情绪: Happy, Sad, Excited, Calm, Angry（默认 Happy）
    --config       配置文件路径（默认 configs/caption_config.json）
    --json         以 JSON 输出运行结果
"""
import sys
import json
import argparse
from pathlib import Path

# 添加项目源码目录到路径
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root / "python"))

from dotenv import load_dotenv

from infrastructure.config_loader import DEFAULT_CONFIG_PATH, load_config
from infrastructure.log_manager import LogManager, get_logger
from models.caption_model import CaptionSession, Mood, PipelineResult
from services.caption_pipeline import CaptionPipeline


def caption_video(video: str, description: str, mood: Mood, config_path: str,
                  echo_caption: bool = True) -> PipelineResult:
    """对单个视频运行一次生成流程"""
    load_dotenv(project_root / ".env")
    config = load_config(config_path)
    LogManager(log_file=config.log_file, level=config.log_level)
    logger = get_logger("CaptionVideoScript")

    logger.info("=" * 60)
    logger.info(f"Video: {video}")
    logger.info(f"Description: {description} | Mood: {mood.value}")
    logger.info("=" * 60)

    pipeline = CaptionPipeline.from_config(config)
    if echo_caption:
        pipeline.add_caption_callback(lambda caption: print(f"\n📝 Caption:\n{caption}"))
    session = CaptionSession(video_uri=video, description=description, mood=mood)
    return pipeline.run(session)


def main():
    parser = argparse.ArgumentParser(
        description="独立的字幕生成脚本",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("--video", "-v", required=True, help="视频文件路径或 URI")
    parser.add_argument("--description", "-d", required=True, help="视频描述")
    parser.add_argument("--mood", "-m", default=Mood.default().value, choices=Mood.labels(), help="情绪")
    parser.add_argument("--config", "-c", default=str(project_root / DEFAULT_CONFIG_PATH), help="配置文件路径")
    parser.add_argument("--json", action="store_true", help="以 JSON 输出运行结果")

    args = parser.parse_args()

    try:
        result = caption_video(
            args.video, args.description, Mood.parse(args.mood), args.config, echo_caption=not args.json
        )
    except ValueError as e:
        print(f"\n❌ {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        sys.exit(0 if result.succeeded else 1)

    if result.succeeded:
        print(f"\n#️⃣ Hashtag: {result.hashtag or '(empty)'}")
        print(f"\n✅ Done ({result.keyframe_count} keyframes)")
        sys.exit(0)
    else:
        reason = result.failure.message if result.failure else result.state.value
        print(f"\n❌ {reason}")
        sys.exit(1)


if __name__ == "__main__":
    main()
