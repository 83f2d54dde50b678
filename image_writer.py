"""
Saves cropped hand images and the capture manifest.
"""
import os

import cv2
import pandas as pd


class ImageEncodeError(Exception):
    """OpenCV could not encode the image."""


def output_filename(counter, output_dir=".", prefix="test-image-", extension=".jpg"):
    return os.path.join(output_dir, f"{prefix}{counter}{extension}")


def save_image(filename, image, encoding=".png"):
    """
    Encode image and write it to filename.

    The encoding is chosen by `encoding`, not by the filename extension.
    Does nothing when filename is empty. Write errors propagate.

    Returns:
        True if a file was written
    """
    if not filename:
        return False

    try:
        ok, buffer = cv2.imencode(encoding, image)
    except cv2.error as e:
        raise ImageEncodeError(f"Could not encode {filename} as {encoding}") from e
    if not ok:
        raise ImageEncodeError(f"Could not encode {filename} as {encoding}")

    with open(filename, "wb") as stream:
        stream.write(buffer.tobytes())

    return True


def save_manifest(records, path):
    """
    Write capture records (list of dicts) to CSV.

    Returns:
        False if there was nothing to write
    """
    if not records:
        print("No captures to log.")
        return False

    df = pd.DataFrame(records)
    df.to_csv(path, index=False)
    print(f"Saved {len(df)} capture records to {path}")
    return True
