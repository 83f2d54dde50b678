import cv2
import numpy as np
import pytest

from fake_camera import ReplaySensorSource, make_color_frame, make_skeleton_frame
from hand_extractor import HandImageExtractor
from kinect_camera import FrameSet, initialize_device
from skeleton_tracking import TrackedBodyState


def white_square_image():
    # crop window for a hand at the frame centre is [140:290, 245:395]
    image = np.zeros((480, 640, 3), dtype=np.uint8)
    image[140:290, 245:395] = 255
    return image


def frame_set(hand=(0.0, 0.0, 2.0), color=True):
    color_frame = make_color_frame(white_square_image()) if color else None
    return FrameSet(make_skeleton_frame(hand), color_frame)


def run(extractor, frames):
    source = ReplaySensorSource(frames)
    initialize_device(source, extractor.on_frames_ready)
    source.replay()


def saved_files(tmp_path):
    return sorted(p.name for p in tmp_path.iterdir())


def test_saves_numbered_crops(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path))

    run(extractor, [frame_set(), frame_set()])

    assert extractor.counter == 2
    assert saved_files(tmp_path) == ["test-image-1.jpg", "test-image-2.jpg"]

    crop = cv2.imread(str(tmp_path / "test-image-1.jpg"))
    assert crop.shape == (150, 150, 3)
    assert (crop == 255).all()


def test_custom_crop_size(tmp_path):
    extractor = HandImageExtractor(80, 60, output_dir=str(tmp_path))

    run(extractor, [frame_set()])

    crop = cv2.imread(str(tmp_path / "test-image-1.jpg"))
    assert crop.shape == (60, 80, 3)


def test_process_frames_returns_state_and_filename(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path))
    frames = frame_set()

    state, filename = extractor.process_frames(frames, TrackedBodyState())

    assert state.active_skeleton is frames.skeleton_frame.skeletons[0]
    assert filename == str(tmp_path / "test-image-1.jpg")
    assert extractor.records[0]["crop_left"] == 245
    assert extractor.records[0]["crop_top"] == 140


def test_missing_color_frame_is_skipped(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path))

    run(extractor, [frame_set(color=False)])

    assert extractor.counter == 0
    assert saved_files(tmp_path) == []
    assert extractor.state.active_skeleton is not None


def test_missing_skeleton_frame_is_skipped(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path))
    color_only = FrameSet(None, make_color_frame(white_square_image()))

    run(extractor, [color_only])

    assert extractor.counter == 0
    assert saved_files(tmp_path) == []


def test_no_tracked_body_writes_nothing(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path))

    run(extractor, [frame_set(hand=None)])

    assert extractor.counter == 0
    assert extractor.state.active_skeleton is None


def test_retain_policy_reuses_stale_body(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path), stale_policy="retain")

    run(extractor, [frame_set(), frame_set(hand=None)])

    assert extractor.counter == 2


def test_clear_policy_forgets_body(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path), stale_policy="clear")

    run(extractor, [frame_set(), frame_set(hand=None)])

    assert extractor.counter == 1


def test_reject_policy_skips_crop_outside_frame(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path), bounds_policy="reject")

    # hand at the left edge: crop would start at x = -75
    run(extractor, [frame_set(hand=(-1.0, 0.0, 2.0)), frame_set()])

    assert saved_files(tmp_path) == ["test-image-1.jpg"]
    assert extractor.counter == 1


def test_clamp_policy_keeps_crop_size(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path), bounds_policy="clamp")

    run(extractor, [frame_set(hand=(-1.0, 0.0, 2.0))])

    crop = cv2.imread(str(tmp_path / "test-image-1.jpg"))
    assert crop.shape == (150, 150, 3)
    assert extractor.records[0]["crop_left"] == 0


def test_hand_at_origin_with_legacy_sentinel_writes_nothing(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path), legacy_zero_sentinel=True)

    run(extractor, [frame_set(hand=(-1.0, 1.0, 2.0))])

    assert extractor.counter == 0
    assert saved_files(tmp_path) == []


def test_hand_at_origin_is_saved_without_legacy_sentinel(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path), bounds_policy="clamp")

    run(extractor, [frame_set(hand=(-1.0, 1.0, 2.0))])

    assert extractor.counter == 1
    assert extractor.records[0]["hand_x"] == 0
    assert extractor.records[0]["hand_y"] == 0


class LateSizeSource(ReplaySensorSource):
    """Reports no color frame size until the streams are enabled, like the SDK."""

    @property
    def color_frame_size(self):
        return (640, 480) if self.enabled_streams else (0, 0)


def test_frame_size_read_before_streams_enabled(tmp_path):
    source = LateSizeSource([frame_set()])
    extractor = HandImageExtractor(output_dir=str(tmp_path), frame_size=source.color_frame_size)
    initialize_device(source, extractor.on_frames_ready)

    source.replay()

    assert extractor.records[0]["hand_x"] == 320
    assert extractor.records[0]["hand_y"] == 240
    assert extractor.records[0]["crop_left"] == 245


def test_frame_size_after_initialize():
    source = LateSizeSource()
    extractor = HandImageExtractor()
    initialize_device(source, extractor.on_frames_ready)
    extractor.frame_size = source.color_frame_size

    assert extractor.frame_size == (640, 480)


def test_write_failure_propagates_from_handler(tmp_path):
    extractor = HandImageExtractor(output_dir=str(tmp_path / "missing_dir"))

    with pytest.raises(OSError):
        extractor.on_frames_ready(frame_set())

    assert extractor.records == []
    assert extractor.last_crop is None


def test_concurrent_delivery_keeps_counter_contiguous(tmp_path):
    frames = [frame_set() for _ in range(20)]
    extractor = HandImageExtractor(output_dir=str(tmp_path), log_joint_positions=False)
    source = ReplaySensorSource(frames, fps=1000)
    # subscribe first so the delivery thread cannot drop early frames
    source.enable_streams()
    source.subscribe(extractor.on_frames_ready)
    source.start()

    source.replay()
    source.join(timeout=10)
    source.stop()

    assert extractor.counter == 40
    assert [r["frame"] for r in extractor.records] == list(range(1, 41))
    assert saved_files(tmp_path) == sorted(f"test-image-{n}.jpg" for n in range(1, 41))
