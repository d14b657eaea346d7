"""
测试 Gemini 服务封装与字幕请求服务
不访问网络：Gemini 客户端使用 mock
"""
import os
import sys
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

# 添加项目路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from infrastructure.config_loader import AppConfig
from models.caption_model import KeyFrame, Mood
from services.caption_service import CaptionService
from services.errors import TransportError
from services.gemini_service import GeminiService


def _frames(count):
    return [KeyFrame(index=i, timestamp_ms=i * 1000, image_bytes=f"img{i}".encode()) for i in range(count)]


class TestGeminiService(unittest.TestCase):
    """测试 GeminiService"""

    def setUp(self):
        self.client = mock.MagicMock()
        self.client.models.generate_content.return_value = SimpleNamespace(text="A dog runs.")
        self.service = GeminiService(api_key="test-key", model_name="gemini-test", client=self.client)

    def test_images_precede_single_text_part(self):
        text = self.service.generate_content(_frames(3), "caption please")

        self.assertEqual(text, "A dog runs.")
        kwargs = self.client.models.generate_content.call_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-test")
        parts = kwargs["contents"]
        self.assertEqual(len(parts), 4)
        self.assertEqual([p.inline_data.data for p in parts[:3]], [b"img0", b"img1", b"img2"])
        self.assertEqual(parts[0].inline_data.mime_type, "image/jpeg")
        self.assertEqual(parts[3].text, "caption please")

    def test_text_only_request(self):
        self.service.generate_content([], "hashtag please")
        parts = self.client.models.generate_content.call_args.kwargs["contents"]
        self.assertEqual(len(parts), 1)
        self.assertEqual(parts[0].text, "hashtag please")

    def test_missing_text_becomes_empty_string(self):
        self.client.models.generate_content.return_value = SimpleNamespace(text=None)
        self.assertEqual(self.service.generate_content([], "x"), "")

    def test_sdk_exception_becomes_transport_error(self):
        cause = TimeoutError("read timed out")
        self.client.models.generate_content.side_effect = cause
        with self.assertRaises(TransportError) as ctx:
            self.service.generate_content(_frames(1), "x")
        self.assertIs(ctx.exception.__cause__, cause)

    def test_failing_text_accessor_becomes_transport_error(self):
        class BlockedResponse:
            @property
            def text(self):
                raise ValueError("response blocked by safety filters")

        self.client.models.generate_content.return_value = BlockedResponse()
        with self.assertRaises(TransportError) as ctx:
            self.service.generate_content(_frames(1), "x")
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    def test_generation_config_passed_through(self):
        service = GeminiService(api_key="k", client=self.client, generation_config={"temperature": 0.2})
        service.generate_content([], "x")
        self.assertEqual(self.client.models.generate_content.call_args.kwargs["config"], {"temperature": 0.2})

    def test_api_key_required(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValueError):
                GeminiService()

    def test_from_config_sets_timeout(self):
        config = AppConfig(api_key="k", model_name="gemini-x", timeout_seconds=12.5)
        with mock.patch("services.gemini_service.genai.Client") as client_cls:
            service = GeminiService.from_config(config)
        self.assertEqual(service.model_name, "gemini-x")
        kwargs = client_cls.call_args.kwargs
        self.assertEqual(kwargs["api_key"], "k")
        self.assertEqual(kwargs["http_options"].timeout, 12500)


class FakeModel:
    """记录调用的假模型"""

    def __init__(self, response="A calm dog trots."):
        self.response = response
        self.calls = []

    def generate_content(self, frames, text):
        self.calls.append((list(frames), text))
        return self.response


class TestCaptionService(unittest.TestCase):
    """测试 CaptionService"""

    def test_caption_request_shape(self):
        model = FakeModel()
        service = CaptionService(model)
        caption = service.request_caption(_frames(10), "a dog running", Mood.CALM)

        self.assertEqual(caption, "A calm dog trots.")
        frames, text = model.calls[0]
        self.assertEqual(len(frames), 10)
        self.assertEqual(
            text,
            "Generate a caption for the following video description with a Calm mood: "
            "a dog running with a Calm mood"
        )

    def test_caption_requires_frames(self):
        service = CaptionService(FakeModel())
        with self.assertRaises(ValueError):
            service.request_caption([], "a dog running", Mood.CALM)

    def test_hashtag_first_token(self):
        model = FakeModel("#sunny #beach vibes")
        hashtag = CaptionService(model).request_hashtag("beach day", Mood.HAPPY)

        self.assertEqual(hashtag, "#sunny")
        frames, text = model.calls[0]
        self.assertEqual(frames, [])
        self.assertTrue(text.startswith("Generate a single hashtag"))

    def test_hashtag_empty_response(self):
        self.assertEqual(CaptionService(FakeModel("")).request_hashtag("x", Mood.SAD), "")


if __name__ == "__main__":
    unittest.main()
