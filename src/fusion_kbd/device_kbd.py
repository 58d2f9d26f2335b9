"""
Transfer dispatch for the Fusion keyboard.

``TransferDispatcher`` sends an encoded request sequence over a claimed
``InterfaceBinding``.  Transfers are blocking and strictly ordered; the
first failure (USB error, timeout or short write) stops the sequence and
raises ``TransferFailed`` naming the request index (and the chunk number for
custom upload chunks).  A half-sent custom upload leaves the slot
inconsistent, so nothing after the failure is sent and nothing is retried.
Re-sending the whole sequence is safe: the firmware overwrites the
previous state.

``FusionKeyboard`` runs the full pipeline for one command::

    kbd = FusionKeyboard()
    result = kbd.set_preset(resolve_preset('wave'))
    if result.warnings:
        ...  # applied, but usbhid was not rebound
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import usb.core

from .constants import DEFAULT_BRIGHTNESS, KBD_INTERFACES, TRANSFER_TIMEOUT_MS
from .core.errors import TransferFailed
from .core.models import (
    FUSION_KBD,
    ApplyResult,
    ControlRequest,
    CustomConfigPayload,
    DeviceIdentity,
    InterruptChunk,
    ModeSelection,
    PresetSelection,
    TransferRequest,
)
from .device_binding import InterfaceBinding
from .device_detector import locate
from .kbd_protocol import encode_brightness, encode_custom, encode_preset

log = logging.getLogger(__name__)


class TransferDispatcher:
    """Sends requests in order over a claimed binding."""

    timeout_ms = TRANSFER_TIMEOUT_MS

    def __init__(self, binding: InterfaceBinding):
        self._binding = binding

    def _submit(self, request: TransferRequest) -> int:
        dev = self._binding.device
        if isinstance(request, ControlRequest):
            return dev.ctrl_transfer(
                request.request_type,
                request.request,
                request.value,
                request.index,
                request.payload,
                timeout=self.timeout_ms,
            )
        if isinstance(request, InterruptChunk):
            return dev.write(request.endpoint, request.payload, timeout=self.timeout_ms)
        raise TypeError(f"Unknown request type: {type(request).__name__}")

    def send(self, requests: Sequence[TransferRequest]) -> int:
        """Send every request, stopping at the first failure.

        Returns:
            Number of requests sent.

        Raises:
            RuntimeError: The binding is not acquired.
            TransferFailed: Request ``index`` failed; later ones were not sent.
        """
        if not self._binding.is_claimed:
            raise RuntimeError("Interfaces not claimed; acquire the binding first")

        for index, request in enumerate(requests):
            chunk = request.sequence if isinstance(request, InterruptChunk) else None
            try:
                written = self._submit(request)
            except usb.core.USBError as e:
                log.error("Transfer %d/%d failed: %s", index, len(requests), e)
                raise TransferFailed(index, e, chunk=chunk) from e

            if written != len(request.payload):
                cause = f"short write ({written}/{len(request.payload)} bytes)"
                log.error("Transfer %d/%d failed: %s", index, len(requests), cause)
                raise TransferFailed(index, cause, chunk=chunk)

            log.debug("Transfer %d/%d OK (%d bytes)", index, len(requests), written)

        return len(requests)


class FusionKeyboard:
    """Locate -> acquire -> send -> release, once per call."""

    def __init__(self, identity: DeviceIdentity = FUSION_KBD,
                 usb_path: Optional[str] = None,
                 interfaces: Sequence[int] = KBD_INTERFACES):
        self.identity = identity
        self.usb_path = usb_path
        self.interfaces = tuple(interfaces)

    def apply(self, requests: Sequence[TransferRequest]) -> ApplyResult:
        """Send a request sequence with the interfaces held exclusively.

        Raises the locate / binding / transfer errors.  Driver reattach
        failures do not raise; they come back in ``ApplyResult.warnings``.
        """
        requests = list(requests)
        dev = locate(self.identity, self.usb_path)
        binding = InterfaceBinding(dev, self.interfaces)
        with binding:
            sent = TransferDispatcher(binding).send(requests)
        log.info("Sent %d transfer(s) to %s", sent, self.identity)
        return ApplyResult(sent=sent, warnings=list(binding.reattach_failures))

    def set_preset(self, selection: PresetSelection) -> ApplyResult:
        return self.apply(encode_preset(selection))

    def upload_custom(self, payload: CustomConfigPayload, slot: int = 0,
                      brightness: int = DEFAULT_BRIGHTNESS,
                      activate: bool = True) -> ApplyResult:
        return self.apply(encode_custom(payload, slot, brightness, activate))

    def set_brightness(self, current_mode: ModeSelection, level: int) -> ApplyResult:
        return self.apply(encode_brightness(current_mode, level))
