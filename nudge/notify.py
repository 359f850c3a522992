# nudge: sends desktop notifications and listens for their events over DBus
#
# Copyright (c) 2024 Dave Jones <dave.jones@canonical.com>
# Copyright (c) 2024 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Wraps the methods of the DBus Notifications freedesktop service. The
module-level functions :func:`send`, :func:`dismiss`, :func:`get_capabilities`
and :func:`get_server_info` each make a single call to the service; the
:class:`Notifications` class combines them with a
:class:`~nudge.dispatch.SignalDispatcher` for applications that want to hear
about notifications being closed, or their actions being invoked.
"""

import threading

import dbus
from dbus.exceptions import DBusException

from .const import WIRE
from .exc import TransportError, DecodeError, InvalidArgument
from .notification import Notification, ServerInfo
from .dispatch import SignalDispatcher


def _session_bus():
    try:
        return dbus.SessionBus()
    except DBusException as err:
        raise _transport_error(err) from err


def _interface(bus):
    if bus is None:
        bus = _session_bus()
    try:
        server = bus.get_object(WIRE.bus_name, WIRE.object_path)
        return dbus.Interface(server, dbus_interface=WIRE.interface)
    except DBusException as err:
        raise _transport_error(err) from err


def _transport_error(err):
    return TransportError(
        f'notification service call failed: {err}', err.get_dbus_name())


def _notify(intf, note):
    try:
        msg_id = intf.Notify(
            note.app_name, note.replaces_id, note.app_icon, note.summary,
            note.body, note.wire_actions, dict(note.hints),
            note.expire_timeout, signature=WIRE.notify_signature)
    except DBusException as err:
        raise _transport_error(err) from err
    # Servers must never return 0 as a notification identifier
    if not isinstance(msg_id, int) or isinstance(msg_id, bool) or msg_id <= 0:
        raise DecodeError(f'invalid notification id in reply: {msg_id!r}')
    return int(msg_id)


def _check_id(msg_id):
    if not 0 < msg_id < 2 ** 32:
        raise InvalidArgument(
            f'invalid notification id {msg_id!r}; ids must be between 1 '
            f'and {2 ** 32 - 1}')


def _close_notification(intf, msg_id):
    _check_id(msg_id)
    try:
        intf.CloseNotification(
            msg_id, signature=WIRE.close_notification_signature)
    except DBusException as err:
        raise _transport_error(err) from err


def _get_capabilities(intf):
    try:
        caps = intf.GetCapabilities()
    except DBusException as err:
        raise _transport_error(err) from err
    if isinstance(caps, str) or not all(isinstance(c, str) for c in caps):
        raise DecodeError(f'invalid capabilities in reply: {caps!r}')
    return [str(c) for c in caps]


def _get_server_info(intf):
    try:
        info = intf.GetServerInformation()
    except DBusException as err:
        raise _transport_error(err) from err
    if (
        isinstance(info, str) or len(info) != len(ServerInfo._fields) or
        not all(isinstance(field, str) for field in info)
    ):
        raise DecodeError(f'invalid server information in reply: {info!r}')
    return ServerInfo(*(str(field) for field in info))


def send(note, *, bus=None):
    """
    Send the :class:`~nudge.notification.Notification` *note* to the
    notification service on *bus* (which defaults to the DBus
    :class:`~dbus.SessionBus`).

    The return value is the ID of the displayed notification. This may be
    used in future calls with the *replaces_id* parameter to replace prior
    notifications, or with :func:`dismiss` to remove it.
    """
    return _notify(_interface(bus), note)


def dismiss(msg_id, *, bus=None):
    """
    Forces the notification identified by *msg_id* (an :class:`int` as
    returned by :func:`send`) to be removed from display. Raises
    :exc:`~nudge.exc.InvalidArgument` if *msg_id* is 0, or otherwise not a
    valid notification id.
    """
    _check_id(msg_id)
    _close_notification(_interface(bus), msg_id)


def get_capabilities(*, bus=None):
    """
    Return a :class:`list` of :class:`str` detailing the capabilities of the
    notification service.

    Typical values include "actions", the server will display specified
    actions to the user, "body", the server supports notification bodies,
    "body-markup", the server supports limited markup in the notification
    body, and "persistence", the server supports persistence of
    notifications. See the `Desktop Notifications Specification`_ for all
    possible return values.

    .. _Desktop Notifications Specification:
        https://specifications.freedesktop.org/notification-spec/latest/
    """
    return _get_capabilities(_interface(bus))


def get_server_info(*, bus=None):
    """
    Returns a :class:`~nudge.notification.ServerInfo` with the "name",
    "vendor", "version", and "spec_version" returned by the service.
    """
    return _get_server_info(_interface(bus))


class Notifications:
    """
    Wraps the methods of the DBus Notifications freedesktop service, and
    subscribes to its signals. If *bus* is not specified, it defaults to the
    DBus :class:`~dbus.SessionBus`. As the instance needs to receive signals,
    the bus must be associated with a "main loop", e.g.
    :class:`DBusGMainLoop`.

    The optional *on_closed* callback is called with the id of a
    notification and a :class:`~nudge.notification.CloseReason` when any
    notification is closed. The optional *on_action* callback is called with
    the id of a notification and the identifier of the action the user
    invoked. Callbacks run in their own threads (or in a pool of at most
    *max_workers* threads), so they are free to call methods of this
    instance.

    Call :meth:`close` when finished with the instance, or use it as a
    context manager.
    """
    def __init__(self, bus=None, *, on_action=None, on_closed=None,
                 max_workers=None):
        if bus is None:
            bus = _session_bus()
        self._bus = bus
        self._intf = _interface(bus)
        self._pending = set()
        self._pending_lock = threading.Lock()
        self._on_closed = on_closed
        self._dispatcher = SignalDispatcher(
            bus, on_closed=self._notification_closed, on_action=on_action,
            max_workers=max_workers)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @property
    def on_closed(self):
        return self._on_closed

    @property
    def on_action(self):
        return self._dispatcher.on_action

    @property
    def closed(self):
        return self._dispatcher.closed

    def close(self):
        """
        Unsubscribe from the service's signals. After this returns no further
        callbacks will be started. Calling this more than once is harmless.
        """
        self._dispatcher.close()

    def get_server_info(self):
        """
        Returns a :class:`~nudge.notification.ServerInfo` with the "name",
        "vendor", "version", and "spec_version" returned by the service.
        """
        return _get_server_info(self._intf)

    def get_capabilities(self):
        """
        Return a :class:`list` of :class:`str` detailing the capabilities of
        the notification service. See :func:`get_capabilities`.
        """
        return _get_capabilities(self._intf)

    def send(self, note):
        """
        Send the :class:`~nudge.notification.Notification` *note* to the
        service, returning the ID of the displayed notification.
        """
        msg_id = _notify(self._intf, note)
        with self._pending_lock:
            self._pending.add(msg_id)
        return msg_id

    def notify(self, summary, **kwargs):
        """
        Construct a :class:`~nudge.notification.Notification` from *summary*
        and the keyword arguments given, and :meth:`send` it.
        """
        return self.send(Notification(summary, **kwargs))

    def dismiss(self, msg_id):
        """
        Forces the notification identified by *msg_id* (an :class:`int` as
        returned by :meth:`send`) to be removed from display.
        """
        _close_notification(self._intf, msg_id)

    @property
    def pending(self):
        """
        Returns the set of identifiers returned by :meth:`send` for which no
        NotificationClosed signal has been received yet.
        """
        with self._pending_lock:
            return frozenset(self._pending)

    def _notification_closed(self, msg_id, reason):
        with self._pending_lock:
            self._pending.discard(msg_id)
        if self._on_closed is not None:
            self._on_closed(msg_id, reason)
