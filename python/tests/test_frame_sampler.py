"""
测试关键帧采样服务
"""
import os
import sys
import tempfile
import unittest
from pathlib import Path

# 添加项目路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from services.errors import PipelineCancelled, ResourceError
from services.frame_sampler import FrameSampler, OpenCVFrameExtractor, compute_sample_timestamps


class FakeExtractor:
    """记录请求时间点的假提取器"""

    def __init__(self, duration_ms, missing_us=(), fail_on_us=None):
        self._duration = duration_ms
        self._missing = set(missing_us)
        self._fail_on = fail_on_us
        self.requested = []
        self.released = False

    def duration_ms(self):
        return self._duration

    def frame_at(self, time_us):
        self.requested.append(time_us)
        if self._fail_on is not None and time_us == self._fail_on:
            raise RuntimeError("decoder crashed")
        if time_us in self._missing:
            return None
        return f"frame@{time_us}".encode()

    def release(self):
        self.released = True


class TestComputeSampleTimestamps(unittest.TestCase):
    """测试采样时间点计算"""

    def test_ten_second_video(self):
        self.assertEqual(
            compute_sample_timestamps(10000),
            [0, 1000, 2000, 3000, 4000, 5000, 6000, 7000, 8000, 9000]
        )

    def test_zero_duration_gives_all_zero(self):
        self.assertEqual(compute_sample_timestamps(0), [0] * 10)

    def test_missing_duration_treated_as_zero(self):
        self.assertEqual(compute_sample_timestamps(None), [0] * 10)
        self.assertEqual(compute_sample_timestamps(-500), [0] * 10)

    def test_integer_division_of_interval(self):
        self.assertEqual(compute_sample_timestamps(10999)[1], 1099)
        self.assertEqual(compute_sample_timestamps(7), [0] * 10)

    def test_bounded_and_non_decreasing(self):
        """各种时长下：恰好 10 个、单调不减、不超过时长"""
        for duration in (1, 9, 10, 11, 999, 1001, 33333, 3_600_000, 123_456_789):
            with self.subTest(duration=duration):
                timestamps = compute_sample_timestamps(duration)
                self.assertEqual(len(timestamps), 10)
                self.assertEqual(timestamps, sorted(timestamps))
                self.assertTrue(all(0 <= ts <= duration for ts in timestamps))

    def test_custom_sample_count(self):
        self.assertEqual(compute_sample_timestamps(900, sample_count=3), [0, 300, 600])

    def test_invalid_sample_count(self):
        with self.assertRaises(ValueError):
            compute_sample_timestamps(1000, sample_count=0)


class TestFrameSampler(unittest.TestCase):
    """测试 FrameSampler"""

    def _sampler(self, extractor, sample_count=10):
        self.opened = []

        def factory(source):
            self.opened.append(source)
            return extractor

        return FrameSampler(extractor_factory=factory, sample_count=sample_count)

    def test_requests_microsecond_timestamps_in_order(self):
        extractor = FakeExtractor(10000)
        frames = self._sampler(extractor).sample("video.mp4")

        self.assertEqual(self.opened, ["video.mp4"])
        self.assertEqual(extractor.requested, [i * 1_000_000 for i in range(10)])
        self.assertEqual(len(frames), 10)
        self.assertEqual([f.timestamp_ms for f in frames], [i * 1000 for i in range(10)])
        self.assertEqual(frames[3].image_bytes, b"frame@3000000")
        self.assertTrue(extractor.released)

    def test_missing_frames_are_skipped_without_reordering(self):
        extractor = FakeExtractor(10000, missing_us={0, 4_000_000, 9_000_000})
        frames = self._sampler(extractor).sample("video.mp4")

        self.assertEqual([f.index for f in frames], [1, 2, 3, 5, 6, 7, 8])
        self.assertEqual([f.timestamp_ms for f in frames], sorted(f.timestamp_ms for f in frames))

    def test_all_frames_missing_returns_empty(self):
        extractor = FakeExtractor(5000, missing_us={i * 500_000 for i in range(10)})
        self.assertEqual(self._sampler(extractor).sample("video.mp4"), [])
        self.assertTrue(extractor.released)

    def test_zero_duration_targets_first_frame(self):
        extractor = FakeExtractor(0)
        frames = self._sampler(extractor).sample("video.mp4")

        self.assertEqual(extractor.requested, [0] * 10)
        self.assertEqual(len(frames), 10)

    def test_release_on_failure(self):
        extractor = FakeExtractor(10000, fail_on_us=2_000_000)
        with self.assertRaises(RuntimeError):
            self._sampler(extractor).sample("video.mp4")
        self.assertTrue(extractor.released)

    def test_open_failure_raises_resource_error(self):
        def factory(source):
            raise ResourceError(f"Could not open video source: {source}")

        sampler = FrameSampler(extractor_factory=factory)
        with self.assertRaises(ResourceError):
            sampler.sample("missing.mp4")

    def test_should_stop_aborts_and_releases(self):
        extractor = FakeExtractor(10000)
        calls = {"count": 0}

        def should_stop():
            calls["count"] += 1
            if calls["count"] > 3:
                raise PipelineCancelled("stop")

        with self.assertRaises(PipelineCancelled):
            self._sampler(extractor).sample("video.mp4", should_stop=should_stop)
        self.assertEqual(len(extractor.requested), 3)
        self.assertTrue(extractor.released)

    def test_invalid_sample_count(self):
        with self.assertRaises(ValueError):
            FrameSampler(sample_count=0)


class TestOpenCVFrameExtractor(unittest.TestCase):
    """测试 OpenCV 提取器"""

    def test_missing_file_raises_resource_error(self):
        with self.assertRaises(ResourceError):
            OpenCVFrameExtractor(os.path.join(tempfile.gettempdir(), "does_not_exist_caption.mp4"))

    def test_samples_generated_video(self):
        """使用 MJPG 编码生成 2 秒的测试视频并采样"""
        import cv2
        import numpy as np

        with tempfile.TemporaryDirectory() as tmp:
            video_path = os.path.join(tmp, "sample.avi")
            writer = cv2.VideoWriter(video_path, cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
            if not writer.isOpened():
                self.skipTest("MJPG writer not available")
            for i in range(20):
                frame = np.full((48, 64, 3), i * 10, dtype=np.uint8)
                writer.write(frame)
            writer.release()

            with OpenCVFrameExtractor(video_path) as extractor:
                self.assertAlmostEqual(extractor.duration_ms(), 2000, delta=200)

            frames = FrameSampler().sample(video_path)
            self.assertGreater(len(frames), 0)
            self.assertLessEqual(len(frames), 10)
            self.assertEqual([f.timestamp_ms for f in frames], sorted(f.timestamp_ms for f in frames))
            self.assertTrue(frames[0].image_bytes.startswith(b"\xff\xd8"))

            with OpenCVFrameExtractor(video_path) as extractor:
                image = extractor.frame_at(1_000_000)
            self.assertIsNotNone(image)
            decoded = cv2.imdecode(np.frombuffer(image, dtype=np.uint8), cv2.IMREAD_COLOR)
            # 第 10 帧的像素值为 100，定位到目标帧附近而不是视频开头
            self.assertLessEqual(abs(float(decoded.mean()) - 100.0), 12.0)


if __name__ == "__main__":
    unittest.main()
