"""
Main program: capture right-hand crops until interrupted.
"""

import os
import sys
import time

import cv2

import config
import fake_camera
import kinect_camera
from hand_extractor import HandImageExtractor
from image_writer import save_manifest


def build_source():
    if config.ENABLE_KINECT:
        return kinect_camera.KinectSensorSource(config.KINECT_SDK_PATH)

    # development mode
    print("ENABLE_KINECT is False, replaying synthetic frames.")
    return fake_camera.ReplaySensorSource(
        fake_camera.synthetic_frames(), fps=config.REPLAY_FPS
    )


def main():
    try:
        source = build_source()
    except kinect_camera.SensorNotFoundError as e:
        print(f"ERROR: {e}")
        return 1

    extractor = HandImageExtractor()

    try:
        kinect_camera.initialize_device(source, extractor.on_frames_ready)
    except kinect_camera.SensorStartError as e:
        print(f"ERROR: {e}")
        return 1

    # stream size is only reported once streams are enabled
    extractor.frame_size = source.color_frame_size

    print("=" * 60)
    print("HAND IMAGE CAPTURE")
    print(f"Saving {extractor.crop_width}x{extractor.crop_height} crops to {os.path.abspath(config.OUTPUT_DIR)}")
    print("Press 'q' in the preview window or Ctrl+C to quit.")
    print("=" * 60)

    try:
        while True:
            if not config.SHOW_DEBUG_WINDOWS:
                time.sleep(0.1)
                continue

            crop = extractor.last_crop
            if crop is not None:
                cv2.imshow("Hand Crop", crop)

            if cv2.waitKey(10) & 0xFF == ord('q'):
                break

    except KeyboardInterrupt:
        pass

    finally:
        source.stop()
        if config.SHOW_DEBUG_WINDOWS:
            cv2.destroyAllWindows()

    if config.WRITE_MANIFEST:
        save_manifest(extractor.records, os.path.join(config.OUTPUT_DIR, config.MANIFEST_FILE))

    print(f"Capture ended. {extractor.counter} hand images saved.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
