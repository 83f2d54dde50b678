"""
Configuration file for the hand image extractor.
All adjustable parameters live here.
"""

# Development flags
ENABLE_KINECT = False      # Set True when hardware is connected

# Kinect v1.8 SDK assemblies (loaded through pythonnet)
KINECT_SDK_PATH = r"C:\Program Files\Microsoft SDKs\Kinect\v1.8\Assemblies"

# Crop window around the right hand (in pixels)
CROP_WINDOW_WIDTH = 150
CROP_WINDOW_HEIGHT = 150

# Skeleton space range mapped onto the full color frame (in meters)
MAX_SKELETON = 1.0

# Crop top = hand Y - CROP_WINDOW_HEIGHT / divisor.
# 1.5 pulls the window upward so the fingers stay inside the crop.
CROP_VERTICAL_BIAS_DIVISOR = 1.5

# "clamp"  -> shift the crop back inside the frame
# "reject" -> raise CropOutOfBoundsError and skip the frame
CROP_BOUNDS_POLICY = "clamp"

# What to do when a frame has no tracked skeleton
#   "clear"  -> forget the previously tracked body
#   "retain" -> keep using the previous body (old behaviour, may be stale)
STALE_SKELETON_POLICY = "clear"

# Treat a hand at exactly (0, 0) as "not found" (old behaviour)
LEGACY_ZERO_SENTINEL = False

# Output files: <OUTPUT_DIR>/<OUTPUT_PREFIX><N><OUTPUT_EXTENSION>
# Files keep the ".jpg" name but are PNG encoded, as the first
# recorded datasets were.
OUTPUT_DIR = "."
OUTPUT_PREFIX = "test-image-"
OUTPUT_EXTENSION = ".jpg"
OUTPUT_ENCODING = ".png"

# CSV log of every saved crop, written on exit
WRITE_MANIFEST = True
MANIFEST_FILE = "capture_manifest.csv"

# Frame rate of the replay source used when ENABLE_KINECT is False
REPLAY_FPS = 30

LOG_JOINT_POSITIONS = True
SHOW_DEBUG_WINDOWS = True
