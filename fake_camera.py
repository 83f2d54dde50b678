# Used for testing without a camera or SDK
import itertools
import math
import threading
import time

import cv2
import numpy as np

from kinect_camera import (DEFAULT_FRAME_SIZE, HAND_RIGHT, NOT_TRACKED, TRACKED, ColorFrame,
                           FrameSet, JointPosition, SensorSource, Skeleton, SkeletonFrame)

SKELETON_ARRAY_LENGTH = 6


def make_skeleton_frame(hand=None, tracked_index=0, length=SKELETON_ARRAY_LENGTH):
    """
    Skeleton frame with one tracked body whose right hand is at `hand`
    (x, y, z in meters). hand=None gives a frame with nobody tracked.
    """
    skeletons = [Skeleton(NOT_TRACKED) for _ in range(length)]
    if hand is not None:
        skeletons[tracked_index] = Skeleton(TRACKED, {HAND_RIGHT: JointPosition(*hand)})
    return SkeletonFrame(tuple(skeletons))


def make_color_frame(image_bgr):
    """Pack a (h, w, 3) BGR image as a Bgr32 color frame."""
    height, width = image_bgr.shape[:2]
    bgra = np.zeros((height, width, 4), dtype=np.uint8)
    bgra[:, :, :3] = image_bgr
    return ColorFrame(width, height, bgra.reshape(-1))


def synthetic_frames(count=None, frame_size=DEFAULT_FRAME_SIZE):
    """Hand moving on a circle, drawn as a filled dot on a gradient."""
    width, height = frame_size
    gradient = np.tile(np.linspace(0, 255, width, dtype=np.uint8), (height, 1))
    background = cv2.cvtColor(gradient, cv2.COLOR_GRAY2BGR)

    steps = itertools.count() if count is None else range(count)
    for i in steps:
        angle = i * 2 * math.pi / 90
        hand = (0.4 * math.cos(angle), 0.3 * math.sin(angle), 2.0)

        image = background.copy()
        px = int(width / 2 + hand[0] * width / 2)
        py = int(height / 2 - hand[1] * height / 2)
        cv2.circle(image, (px, py), 20, (0, 200, 255), -1)

        yield FrameSet(make_skeleton_frame(hand), make_color_frame(image))


class ReplaySensorSource(SensorSource):
    """
    Replays canned FrameSets to subscribers.

    With fps=None frames are only delivered by replay() on the caller's
    thread. With fps set, start() also spawns a delivery thread that plays
    the role of the driver's event thread.
    """

    def __init__(self, frame_sets=(), fps=None, start_error=None,
                 frame_size=DEFAULT_FRAME_SIZE):
        self.frame_sets = frame_sets
        self.fps = fps
        self.start_error = start_error
        self._frame_size = frame_size
        self.enabled_streams = []
        self.callbacks = []
        self.started = False
        self._running = False
        self._thread = None

    @property
    def color_frame_size(self):
        return self._frame_size

    def enable_streams(self):
        self.enabled_streams = ["skeleton", "color", "depth"]

    def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True
        print("[Fake] start_device")

        if self.fps:
            self._running = True
            self._thread = threading.Thread(target=self._delivery_loop, daemon=True)
            self._thread.start()

    def subscribe(self, callback):
        self.callbacks.append(callback)

    def stop(self):
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        self.started = False

    def join(self, timeout=None):
        """Wait for the delivery thread to run out of frames."""
        if self._thread is not None:
            self._thread.join(timeout)

    def replay(self):
        """Deliver every frame set synchronously. Returns the number delivered."""
        delivered = 0
        for frame_set in self.frame_sets:
            self._deliver(frame_set)
            delivered += 1
        return delivered

    def _deliver(self, frame_set):
        for callback in self.callbacks:
            callback(frame_set)

    def _delivery_loop(self):
        for frame_set in self.frame_sets:
            if not self._running:
                break
            self._deliver(frame_set)
            time.sleep(1 / self.fps)
