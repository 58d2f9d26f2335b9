#!/usr/bin/env python3
"""
fusion-kbd - Command Line Interface

Entry point for the fusion-kbd package.  Detaching the keyboard from usbhid
needs root, or the udev rule installed by ``fusion-kbd setup-udev``.

Exit codes:
    0  success
    1  usage / unexpected error
    2  keyboard not found
    3  several keyboards match (use --device)
    4  keyboard busy (interface claimed by another process)
    5  kernel driver could not be detached
    6  transfer failed (lighting may be in an inconsistent state, re-run)
    7  invalid custom configuration file
    8  invalid preset, color, speed or brightness
    9  applied, but the kernel driver could not be reattached (replug)
"""

import argparse
import logging
import os
import subprocess
import sys

from fusion_kbd.__version__ import __version__
from fusion_kbd.constants import BRIGHTNESS_MAX, CUSTOM_SLOT_COUNT, SPEED_MAX
from fusion_kbd.core.errors import DriverReattachFailed, KbdError
from fusion_kbd.core.models import FUSION_KBD

log = logging.getLogger(__name__)

UDEV_RULES_PATH = "/etc/udev/rules.d/99-fusion-kbd.rules"


def _setup_logging(verbose=0):
    """Configure logging from the -v count."""
    if verbose >= 2:
        logging.basicConfig(level=logging.DEBUG, format='[%(levelname)s] %(name)s: %(message)s')
    elif verbose == 1:
        logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING, format='[%(levelname)s] %(message)s')
    # pyusb logs every transfer at DEBUG
    logging.getLogger('usb').setLevel(logging.WARNING)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="fusion-kbd",
        description="Control the Fusion RGB keyboard on the Gigabyte Aero 15X",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    fusion-kbd list                     Show presets and colors
    fusion-kbd detect --all             List matching keyboards
    fusion-kbd preset wave              Rainbow wave
    fusion-kbd preset static red -b 80  Solid red, full brightness
    fusion-kbd custom layout.bin        Upload a 512-byte custom layout
    fusion-kbd brightness 10            Dim the current mode
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v, -vv)"
    )
    parser.add_argument(
        "--device", "-d",
        help="USB path of the keyboard to use (see 'fusion-kbd detect --all')"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # List command
    subparsers.add_parser("list", help="List presets and colors")

    # Detect command
    detect_parser = subparsers.add_parser("detect", help="Detect the keyboard")
    detect_parser.add_argument("--all", "-a", action="store_true", help="Show all matching keyboards")

    # Select command
    select_parser = subparsers.add_parser("select", help="Select keyboard to control")
    select_parser.add_argument("number", type=int, help="Keyboard number from 'fusion-kbd detect --all'")

    # Preset command
    preset_parser = subparsers.add_parser("preset", help="Set lighting from preset profiles")
    preset_parser.add_argument("preset", help="Preset name (see 'fusion-kbd list')")
    preset_parser.add_argument("color", nargs="?", help="Color (required except for wave and neon)")
    preset_parser.add_argument(
        "--speed", "-s", type=int,
        help=f"Effect speed (0 - {SPEED_MAX})"
    )
    preset_parser.add_argument(
        "--brightness", "-b", type=int,
        help=f"Keyboard brightness (0 - {BRIGHTNESS_MAX})"
    )

    # Custom command
    custom_parser = subparsers.add_parser("custom", help="Set a custom lighting profile")
    custom_parser.add_argument("config", help="RGB configuration file (binary, 512 bytes)")
    custom_parser.add_argument(
        "--slot", type=int, default=0,
        help=f"Custom slot to store the profile in (0 - {CUSTOM_SLOT_COUNT - 1})"
    )
    custom_parser.add_argument(
        "--brightness", "-b", type=int,
        help=f"Keyboard brightness (0 - {BRIGHTNESS_MAX})"
    )
    custom_parser.add_argument(
        "--no-activate", action="store_true",
        help="Only store the profile, keep the current lighting"
    )

    # Brightness command
    bright_parser = subparsers.add_parser(
        "brightness", help="Change brightness of the last mode set by fusion-kbd"
    )
    bright_parser.add_argument("level", type=int,
                               help=f"Brightness (0 - {BRIGHTNESS_MAX})")

    # Setup udev rules command
    udev_parser = subparsers.add_parser("setup-udev", help="Install udev rule for non-root access")
    udev_parser.add_argument("--dry-run", action="store_true", help="Print rule without installing")

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help / --version exit 0, usage errors exit 1
        return 0 if e.code in (0, None) else 1

    if args.command is None:
        parser.print_help()
        return 0

    _setup_logging(args.verbose)

    if args.command == "list":
        return list_modes()
    elif args.command == "detect":
        return detect(show_all=args.all)
    elif args.command == "select":
        return select_device(args.number)
    elif args.command == "preset":
        return set_preset(args.preset, color=args.color, speed=args.speed,
                          brightness=args.brightness, device=args.device)
    elif args.command == "custom":
        return upload_custom(args.config, slot=args.slot, brightness=args.brightness,
                             activate=not args.no_activate, device=args.device)
    elif args.command == "brightness":
        return set_brightness(args.level, device=args.device)
    elif args.command == "setup-udev":
        return setup_udev(dry_run=args.dry_run)

    return 0


# =========================================================================
# Helpers
# =========================================================================

def _report_error(e):
    """Print a KbdError naming the failed stage; return its exit code."""
    print(f"Error ({e.stage}): {e}", file=sys.stderr)
    return e.exit_code


def _report_result(result, what):
    """Print the outcome of a FusionKeyboard run; return the exit code."""
    if result.warnings:
        print(f"{what} applied, but:", file=sys.stderr)
        for warning in result.warnings:
            print(f"  Warning ({warning.stage}): {warning}", file=sys.stderr)
        print("  The keyboard may not type until it is replugged or the laptop resumes.",
              file=sys.stderr)
        return DriverReattachFailed.exit_code
    print(f"{what} applied.")
    return 0


def _resolve_device(device):
    """Explicit --device wins over the saved selection."""
    if device:
        return device
    from fusion_kbd.conf import get_selected_device
    return get_selected_device()


def _keyboard(device):
    from fusion_kbd.device_kbd import FusionKeyboard
    return FusionKeyboard(FUSION_KBD, usb_path=_resolve_device(device))


# =========================================================================
# Commands
# =========================================================================

def list_modes():
    """Print supported presets and colors."""
    from fusion_kbd.core.models import Preset
    from fusion_kbd.payload import color_names

    print("Presets:")
    for preset in Preset:
        note = "" if preset.needs_color else "  (color optional)"
        print(f"  {preset.label:<20} 0x{int(preset):02x}{note}")
    print("\nColors:")
    print(f"  {', '.join(color_names())}")
    print(f"\nBrightness 0 - {BRIGHTNESS_MAX}, speed 0 - {SPEED_MAX}, "
          f"custom slots 0 - {CUSTOM_SLOT_COUNT - 1}")
    return 0


def detect(show_all=False):
    """Detect the keyboard."""
    try:
        from fusion_kbd.conf import get_selected_device
        from fusion_kbd.device_detector import find_keyboards

        keyboards = find_keyboards(FUSION_KBD)
        if not keyboards:
            print(f"No Fusion keyboard ({FUSION_KBD}) detected.")
            return 2

        selected = get_selected_device()
        if show_all:
            for i, kbd in enumerate(keyboards, 1):
                marker = "*" if kbd.usb_path == selected else " "
                print(f"{marker} [{i}] {kbd.usb_path} [{kbd.identity}] bus {kbd.bus} address {kbd.address}")
            if len(keyboards) > 1:
                print("\nUse 'fusion-kbd select N' to choose one")
        else:
            kbd = next((k for k in keyboards if k.usb_path == selected), keyboards[0])
            print(f"Active: {kbd.usb_path} [{kbd.identity}]")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def select_device(number):
    """Persist the USB path of keyboard *number* (1-based)."""
    try:
        from fusion_kbd.conf import save_selected_device
        from fusion_kbd.device_detector import find_keyboards

        keyboards = find_keyboards(FUSION_KBD)
        if not keyboards:
            print("No keyboards found.")
            return 2

        if number < 1 or number > len(keyboards):
            print(f"Invalid keyboard number. Use 1-{len(keyboards)}")
            return 1

        kbd = keyboards[number - 1]
        save_selected_device(kbd.usb_path)
        print(f"Selected: {kbd.usb_path}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def set_preset(name, color=None, speed=None, brightness=None, device=None):
    """Apply a built-in preset."""
    from fusion_kbd.conf import get_default_brightness, get_default_speed, save_last_mode
    from fusion_kbd.payload import resolve_preset

    try:
        selection = resolve_preset(
            name,
            color=color,
            speed=speed if speed is not None else get_default_speed(),
            brightness=brightness if brightness is not None else get_default_brightness(),
        )
        result = _keyboard(device).set_preset(selection)
    except KbdError as e:
        return _report_error(e)

    save_last_mode(selection)
    return _report_result(result, f"Preset '{selection.preset.label}'")


def upload_custom(path, slot=0, brightness=None, activate=True, device=None):
    """Upload a raw custom configuration file."""
    from fusion_kbd.conf import get_default_brightness, save_last_mode
    from fusion_kbd.core.models import CustomSelection
    from fusion_kbd.payload import load_custom_file

    if brightness is None:
        brightness = get_default_brightness()

    try:
        selection = CustomSelection(slot=slot, brightness=brightness)
        payload = load_custom_file(path)
        result = _keyboard(device).upload_custom(payload, slot=slot,
                                                 brightness=brightness, activate=activate)
    except KbdError as e:
        return _report_error(e)

    if activate:
        save_last_mode(selection)
    return _report_result(result, f"Custom profile (slot {slot})")


def set_brightness(level, device=None):
    """Re-send the last applied mode with a new brightness."""
    from fusion_kbd.conf import get_last_mode, save_last_mode

    current = get_last_mode()
    if current is None:
        print("Error (selection): current mode unknown; the keyboard cannot report it.\n"
              "Set a preset or custom profile with fusion-kbd first "
              "(or pass -b to 'preset'/'custom').", file=sys.stderr)
        return 1

    try:
        updated = current.with_brightness(level)
        result = _keyboard(device).set_brightness(current, level)
    except KbdError as e:
        return _report_error(e)

    save_last_mode(updated)
    return _report_result(result, f"Brightness {level}")


def setup_udev(dry_run=False):
    """Install a udev rule so the keyboard can be controlled without root."""
    try:
        rules_content = (
            "# Gigabyte Aero 15X Fusion RGB keyboard - auto-generated by fusion-kbd setup-udev\n"
            f'SUBSYSTEM=="usb", ATTRS{{idVendor}}=="{FUSION_KBD.vendor_id:04x}", '
            f'ATTRS{{idProduct}}=="{FUSION_KBD.product_id:04x}", MODE="0666"\n'
        )

        if dry_run:
            print(rules_content)
            print(f"# Would write to {UDEV_RULES_PATH}")
            return 0

        if os.geteuid() != 0:
            print("Error: root required. Run with:")
            print("  sudo fusion-kbd setup-udev")
            print("\nOr preview first:")
            print("  fusion-kbd setup-udev --dry-run")
            return 1

        with open(UDEV_RULES_PATH, "w") as f:
            f.write(rules_content)
        print(f"Wrote {UDEV_RULES_PATH}")

        subprocess.run(["udevadm", "control", "--reload-rules"], check=False)
        subprocess.run(["udevadm", "trigger"], check=False)
        print("\nDone. Replug the keyboard (or reboot) for the rule to take effect.")
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
