"""
Kernel driver binding for the keyboard's USB interfaces.

``InterfaceBinding`` takes the lighting interfaces away from ``usbhid`` for
the duration of a ``with`` block and hands them back afterwards::

    with InterfaceBinding(dev) as binding:
        TransferDispatcher(binding).send(requests)
    if binding.reattach_failures:
        ...  # keyboard may need a replug to type again

Acquire (per interface): query driver -> detach if bound -> claim.
Release: release interfaces -> reattach what we detached -> dispose.

Release runs on every exit path and at most once.  A failed reattach is
recorded, logged and never raised: by then the lighting may already be
applied.  A failed acquire rolls back what it did before raising, so
``DeviceBusy`` leaves every driver bound as it was.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

import usb.core
import usb.util

from .constants import KBD_INTERFACES
from .core.errors import DeviceBusy, DriverDetachFailed, DriverReattachFailed
from .core.models import OriginalDriverState

log = logging.getLogger(__name__)


class InterfaceBinding:
    """Scoped exclusive access to a device's interfaces."""

    def __init__(self, device, interfaces: Sequence[int] = KBD_INTERFACES):
        self.device = device
        self.interfaces = tuple(interfaces)
        self.driver_state: Dict[int, OriginalDriverState] = {}
        self.reattach_failures: List[DriverReattachFailed] = []
        self._claimed: List[int] = []
        self._acquired = False

    @property
    def is_claimed(self) -> bool:
        """True between a successful acquire() and release()."""
        return self._acquired

    # ------------------------------------------------------------------
    # Acquire
    # ------------------------------------------------------------------

    def _driver_active(self, interface: int) -> bool:
        try:
            return bool(self.device.is_kernel_driver_active(interface))
        except NotImplementedError:
            # Backend without kernel-driver support (macOS, Windows)
            return False
        except usb.core.USBError as e:
            log.debug("Cannot query driver on interface %d: %s", interface, e)
            return False

    def acquire(self) -> 'InterfaceBinding':
        """Detach kernel drivers and claim every interface.

        Raises:
            DriverDetachFailed: A bound driver refused to detach.
            DeviceBusy: An interface could not be claimed.
        """
        if self._acquired:
            raise RuntimeError("Interfaces already acquired")

        try:
            for intf in self.interfaces:
                state = OriginalDriverState(interface=intf)
                state.was_attached = self._driver_active(intf)
                self.driver_state[intf] = state
                if state.was_attached:
                    try:
                        self.device.detach_kernel_driver(intf)
                    except usb.core.USBError as e:
                        raise DriverDetachFailed(
                            f"Cannot detach kernel driver from interface {intf}: {e}",
                            interface=intf,
                        ) from e
                    state.detached = True
                    log.debug("Detached kernel driver from interface %d", intf)

            for intf in self.interfaces:
                try:
                    usb.util.claim_interface(self.device, intf)
                except usb.core.USBError as e:
                    raise DeviceBusy(
                        f"Cannot claim interface {intf} (in use by another process?): {e}",
                        interface=intf,
                    ) from e
                self._claimed.append(intf)
                log.debug("Claimed interface %d", intf)
        except BaseException:
            # Includes KeyboardInterrupt between detach and claim
            self._rollback()
            raise

        self._acquired = True
        log.info("Acquired interfaces %s", ", ".join(str(i) for i in self.interfaces))
        return self

    def _rollback(self) -> None:
        """Undo a partial acquire."""
        self._release_claimed()
        self._reattach_drivers()
        # Rollback failures are only logged; the acquire error is what matters.
        self.reattach_failures.clear()

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    def _release_claimed(self) -> None:
        while self._claimed:
            intf = self._claimed.pop()
            try:
                usb.util.release_interface(self.device, intf)
                log.debug("Released interface %d", intf)
            except usb.core.USBError as e:
                log.warning("Failed to release interface %d: %s", intf, e)

    def _reattach_drivers(self) -> None:
        for intf in self.interfaces:
            state = self.driver_state.get(intf)
            if state is None or state.consumed:
                continue
            state.consumed = True
            if not state.detached:
                continue
            try:
                self.device.attach_kernel_driver(intf)
                log.debug("Reattached kernel driver to interface %d", intf)
            except (usb.core.USBError, NotImplementedError) as e:
                failure = DriverReattachFailed(
                    f"Cannot reattach kernel driver to interface {intf}: {e}",
                    interface=intf,
                )
                self.reattach_failures.append(failure)
                log.warning("%s (replug the keyboard to restore typing)", failure)

    def release(self) -> List[DriverReattachFailed]:
        """Release interfaces and rebind original drivers.

        Safe to call more than once; only the first call after a successful
        acquire does anything.

        Returns:
            Reattach failures (empty on a clean release).
        """
        if not self._acquired:
            return self.reattach_failures
        self._acquired = False
        try:
            self._release_claimed()
            self._reattach_drivers()
        finally:
            usb.util.dispose_resources(self.device)
        log.info("Released interfaces %s", ", ".join(str(i) for i in self.interfaces))
        return self.reattach_failures

    def __enter__(self):
        return self.acquire()

    def __exit__(self, *exc):
        self.release()
