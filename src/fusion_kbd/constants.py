"""
Hardware constants for the Gigabyte Aero 15X Fusion RGB keyboard.

All values come from USB captures of the vendor's Windows tool.  They are
a firmware contract: do not derive or "fix" them.
"""

# =========================================================================
# USB identity
# =========================================================================

FUSION_VID = 0x1044
FUSION_PID = 0x7A39

# Interface 3 receives the lighting commands, interface 0 is the keyboard
# itself.  Both must be detached or the firmware ignores the upload.
KBD_INTERFACES = (0, 3)

# =========================================================================
# Control transfer (HID SET_REPORT on interface 3)
# =========================================================================

# Host-to-device | Class | Interface
REQUEST_TYPE_CLASS_OUT = 0x21
HID_SET_REPORT = 0x09
REPORT_VALUE = 0x0300   # feature report, id 0
REPORT_INDEX = 0x0003   # interface 3

# Interrupt OUT endpoint used for custom configuration chunks
EP_CUSTOM_OUT = 0x06

# =========================================================================
# Header layout
# =========================================================================
#   [0] kind  [1] reserved  [2] mode/slot  [3] speed or packet count
#   [4] brightness  [5] color  [6] reserved  [7] checksum

HEADER_SIZE = 8

KIND_PRESET = 0x08
KIND_CUSTOM_CONFIG = 0x12
KIND_READ_CONFIG = 0x92  # known from captures, not used

# Custom slots are selected as modes 0x33..0x37
CUSTOM_MODE_BASE = 0x33
CUSTOM_SLOT_COUNT = 5

# =========================================================================
# Custom configuration payload
# =========================================================================

CUSTOM_CHUNK_SIZE = 64
CUSTOM_CHUNK_COUNT = 8
CUSTOM_CONFIG_SIZE = CUSTOM_CHUNK_SIZE * CUSTOM_CHUNK_COUNT  # 512

# Packet count travels in a single header byte
CUSTOM_CONFIG_MAX = CUSTOM_CHUNK_SIZE * 0xFF

# Payload length each request code mandates
REQUEST_PAYLOAD_SIZES = {
    HID_SET_REPORT: HEADER_SIZE,
}

# =========================================================================
# Setting ranges
# =========================================================================

BRIGHTNESS_MAX = 0x50
DEFAULT_BRIGHTNESS = BRIGHTNESS_MAX // 3
SPEED_MAX = 10
DEFAULT_SPEED = 5

# =========================================================================
# Timing
# =========================================================================

# Per-transfer timeout (ms).  Fixed: the dispatcher has no per-call override.
TRANSFER_TIMEOUT_MS = 1000
