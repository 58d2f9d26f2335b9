"""fusion-kbd version information."""

__version__ = "0.2.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.1.0 - Presets with color/speed/brightness, 512-byte custom profile upload
# 0.2.0 - Restore usbhid after every run (also on failure), refuse to guess
#         between several keyboards (detect/select/--device), abort uploads
#         on the first failed transfer, distinct exit codes, brightness
#         command re-sending the last applied mode, setup-udev
