"""
Handles communication with the Kinect v1 sensor.

The rest of the program only talks to a SensorSource. KinectSensorSource is
the real device (Microsoft Kinect SDK v1.8 loaded through pythonnet);
fake_camera.ReplaySensorSource replays canned frames for development and tests.

Frames handed to subscribers are plain Python snapshots (FrameSet), so no SDK
object ever escapes the AllFramesReady handler.
"""

import sys
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

import numpy as np

# Skeleton tracking states (same strings as the SDK enum names)
TRACKED = "Tracked"
POSITION_ONLY = "PositionOnly"
NOT_TRACKED = "NotTracked"

HAND_RIGHT = "HandRight"

DEFAULT_FRAME_SIZE = (640, 480)


class SensorNotFoundError(Exception):
    """No Kinect sensor is connected."""


class SensorStartError(Exception):
    """The sensor refused to start."""


@dataclass(frozen=True)
class JointPosition:
    """Joint position in skeleton space (meters, camera at origin)."""
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class Skeleton:
    tracking_state: str
    joints: Dict[str, JointPosition] = field(default_factory=dict)


@dataclass(frozen=True)
class SkeletonFrame:
    skeletons: Tuple[Skeleton, ...]

    @property
    def skeleton_array_length(self) -> int:
        return len(self.skeletons)


@dataclass(frozen=True)
class ColorFrame:
    """Raw Bgr32 color frame (4 bytes per pixel, last byte unused)."""
    width: int
    height: int
    pixels: np.ndarray

    @property
    def pixel_data_length(self) -> int:
        return self.pixels.size

    def to_bgr(self) -> np.ndarray:
        """Return a fresh (height, width, 3) uint8 BGR image."""
        color_image = self.pixels.reshape(self.height, self.width, 4)
        return color_image[:, :, :3].copy()


@dataclass(frozen=True)
class FrameSet:
    """One AllFramesReady delivery. Either frame may be missing."""
    skeleton_frame: Optional[SkeletonFrame] = None
    color_frame: Optional[ColorFrame] = None
    timestamp: float = field(default_factory=time.time)


FrameCallback = Callable[[FrameSet], None]


class SensorSource:
    """
    Capability interface of a capture device:
    enable streams, start, subscribe to frame events, stop.
    """

    @property
    def color_frame_size(self) -> Tuple[int, int]:
        return DEFAULT_FRAME_SIZE

    @property
    def color_pixel_data_length(self) -> int:
        width, height = self.color_frame_size
        return width * height * 4

    def enable_streams(self):
        raise NotImplementedError

    def start(self):
        raise NotImplementedError

    def subscribe(self, callback: FrameCallback):
        raise NotImplementedError

    def stop(self):
        raise NotImplementedError


class KinectSensorSource(SensorSource):
    """First Kinect sensor found by the SDK."""

    def __init__(self, sdk_path: str):
        # pythonnet needs a .NET runtime, so only load it for real hardware
        import clr

        clr.AddReference("System")
        if sdk_path not in sys.path:
            sys.path.append(sdk_path)
        clr.AddReference("Microsoft.Kinect")

        from System import Array, Byte
        import Microsoft.Kinect as kinect

        self._kinect = kinect
        self._array = Array
        self._byte = Byte
        self._callbacks = []
        self._handler = None

        if kinect.KinectSensor.KinectSensors.Count == 0:
            raise SensorNotFoundError("No Kinect sensor connected.")

        self.sensor = kinect.KinectSensor.KinectSensors[0]
        print(f"[Kinect] Found sensor: {self.sensor.DeviceConnectionId}")

    @property
    def color_frame_size(self) -> Tuple[int, int]:
        stream = self.sensor.ColorStream
        return stream.FrameWidth, stream.FrameHeight

    @property
    def color_pixel_data_length(self) -> int:
        return self.sensor.ColorStream.FramePixelDataLength

    def enable_streams(self):
        kinect = self._kinect
        self.sensor.SkeletonStream.Enable()
        self.sensor.ColorStream.Enable(kinect.ColorImageFormat.RgbResolution640x480Fps30)
        self.sensor.DepthStream.Enable(kinect.DepthImageFormat.Resolution640x480Fps30)
        print("[Kinect] Skeleton + Color + Depth streams enabled")

    def start(self):
        self.sensor.Start()

    def subscribe(self, callback: FrameCallback):
        self._callbacks.append(callback)
        if self._handler is None:
            self._handler = self._all_frames_ready
            self.sensor.AllFramesReady += self._handler

    def stop(self):
        if self._handler is not None:
            self.sensor.AllFramesReady -= self._handler
            self._handler = None
        self.sensor.Stop()

    # ── SDK event handling ────────────────────────────────────────────────────

    def _all_frames_ready(self, sender, e):
        frame_set = FrameSet(
            skeleton_frame=self._read_skeleton_frame(e),
            color_frame=self._read_color_frame(e),
        )
        for callback in self._callbacks:
            callback(frame_set)

    def _read_skeleton_frame(self, e) -> Optional[SkeletonFrame]:
        frame = e.OpenSkeletonFrame()
        if not frame:
            return None
        try:
            sdk_skeletons = self._array.CreateInstance(
                self._kinect.Skeleton, frame.SkeletonArrayLength
            )
            frame.CopySkeletonDataTo(sdk_skeletons)
            skeletons = tuple(self._convert_skeleton(s) for s in sdk_skeletons)
        finally:
            frame.Dispose()
        return SkeletonFrame(skeletons)

    def _convert_skeleton(self, skeleton) -> Skeleton:
        if skeleton is None:
            return Skeleton(NOT_TRACKED)

        state = str(skeleton.TrackingState)
        joints = {}
        if state == TRACKED:
            for joint in skeleton.Joints:
                position = joint.Position
                joints[str(joint.JointType)] = JointPosition(
                    float(position.X), float(position.Y), float(position.Z)
                )
        return Skeleton(state, joints)

    def _read_color_frame(self, e) -> Optional[ColorFrame]:
        frame = e.OpenColorImageFrame()
        if not frame:
            return None
        try:
            color_bytes = self._array.CreateInstance(self._byte, self.color_pixel_data_length)
            frame.CopyPixelDataTo(color_bytes)
            pixels = np.frombuffer(color_bytes, dtype=np.uint8).copy()
            color_frame = ColorFrame(frame.Width, frame.Height, pixels)
        finally:
            frame.Dispose()
        return color_frame


def initialize_device(source: SensorSource, callback: FrameCallback) -> SensorSource:
    """
    Enable skeleton, color and depth streams, start the device and register
    callback for AllFramesReady.

    Raises:
        SensorStartError: the device failed to start. Nothing is subscribed.
    """
    source.enable_streams()

    try:
        source.start()
    except Exception as e:
        raise SensorStartError(f"Error starting Kinect device: {e}") from e

    source.subscribe(callback)
    return source
