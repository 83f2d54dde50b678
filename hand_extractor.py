"""
hand_extractor.py
-----------------
Crops a fixed-size window around the tracked right hand out of every color
frame and saves it as an image file.

  from kinect_camera import KinectSensorSource, initialize_device
  from hand_extractor import HandImageExtractor

  source = KinectSensorSource(config.KINECT_SDK_PATH)
  extractor = HandImageExtractor(150, 150)
  initialize_device(source, extractor.on_frames_ready)
  extractor.frame_size = source.color_frame_size  # valid once streams are enabled

Files are named test-image-1.jpg, test-image-2.jpg, ... in OUTPUT_DIR. They
are PNG encoded despite the .jpg name (see config.OUTPUT_ENCODING).
"""

import threading
from datetime import datetime
from typing import Optional, Tuple

import numpy as np

import config
from cropping import CropOutOfBoundsError, apply_bounds_policy, compute_crop_rect, crop_image
from image_writer import output_filename, save_image
from kinect_camera import DEFAULT_FRAME_SIZE, ColorFrame, FrameSet
from skeleton_tracking import HandPoint, TrackedBodyState, locate_right_hand, select_active_skeleton


class HandImageExtractor:
    """
    Frame handler for AllFramesReady.

    Keeps the frame counter, the tracked body carried between frames and a
    record of every saved crop.
    """

    def __init__(self,
                 crop_width: int = config.CROP_WINDOW_WIDTH,
                 crop_height: int = config.CROP_WINDOW_HEIGHT,
                 frame_size: Tuple[int, int] = DEFAULT_FRAME_SIZE,
                 output_dir: str = config.OUTPUT_DIR,
                 vertical_bias_divisor: float = config.CROP_VERTICAL_BIAS_DIVISOR,
                 bounds_policy: str = config.CROP_BOUNDS_POLICY,
                 stale_policy: str = config.STALE_SKELETON_POLICY,
                 legacy_zero_sentinel: bool = config.LEGACY_ZERO_SENTINEL,
                 max_skeleton: float = config.MAX_SKELETON,
                 log_joint_positions: bool = config.LOG_JOINT_POSITIONS):
        self.crop_width = crop_width
        self.crop_height = crop_height
        self.frame_size = frame_size
        self.output_dir = output_dir
        self.vertical_bias_divisor = vertical_bias_divisor
        self.bounds_policy = bounds_policy
        self.stale_policy = stale_policy
        self.legacy_zero_sentinel = legacy_zero_sentinel
        self.max_skeleton = max_skeleton
        self.log_joint_positions = log_joint_positions

        self.counter = 0
        self.state = TrackedBodyState()
        self.records = []
        self.last_crop: Optional[np.ndarray] = None
        self._lock = threading.Lock()

    # ── Event entry point ─────────────────────────────────────────────────────

    def on_frames_ready(self, frame_set: FrameSet):
        """Callback for the sensor source. Serialises frame handling."""
        with self._lock:
            self.state, _ = self.process_frames(frame_set, self.state)

    # ── Core logic ────────────────────────────────────────────────────────────

    def process_frames(self, frame_set: FrameSet,
                       state: TrackedBodyState) -> Tuple[TrackedBodyState, Optional[str]]:
        """
        Handle one frame set.

        Returns:
            (new tracked body state, filename written or None)
        """
        hand = None

        if frame_set.skeleton_frame is not None:
            state = select_active_skeleton(
                frame_set.skeleton_frame.skeletons, state, self.stale_policy
            )
            hand = locate_right_hand(
                state, self._scaling_size(frame_set), self.max_skeleton, self.legacy_zero_sentinel
            )
            if hand is not None and self.log_joint_positions:
                print(f"Joint Position: {hand.x}, {hand.y}")

        if frame_set.color_frame is None or hand is None:
            return state, None

        try:
            filename = self._save_hand_crop(frame_set, hand)
        except CropOutOfBoundsError as e:
            print(f"[HandImageExtractor]  Skipping frame: {e}")
            return state, None

        return state, filename

    def _scaling_size(self, frame_set: FrameSet) -> Tuple[int, int]:
        # color frame size wins; frame_size is the fallback for skeleton-only sets
        if frame_set.color_frame is not None:
            return frame_set.color_frame.width, frame_set.color_frame.height
        return self.frame_size

    def _save_hand_crop(self, frame_set: FrameSet, hand: HandPoint) -> str:
        color_frame: ColorFrame = frame_set.color_frame
        image = color_frame.to_bgr()

        rect = compute_crop_rect(hand, self.crop_width, self.crop_height,
                                 self.vertical_bias_divisor)
        rect = apply_bounds_policy(rect, color_frame.width, color_frame.height,
                                   self.bounds_policy)
        cropped = crop_image(image, rect)

        self.counter += 1
        filename = output_filename(self.counter, self.output_dir,
                                   config.OUTPUT_PREFIX, config.OUTPUT_EXTENSION)
        save_image(filename, cropped, config.OUTPUT_ENCODING)

        self.last_crop = cropped
        self.records.append({
            "frame": self.counter,
            "filename": filename,
            "hand_x": hand.x,
            "hand_y": hand.y,
            "crop_left": rect.left,
            "crop_top": rect.top,
            "timestamp": datetime.fromtimestamp(frame_set.timestamp).isoformat(),
        })
        return filename
