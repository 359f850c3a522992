# nudge: sends desktop notifications and listens for their events over DBus
#
# Copyright (c) 2024 Dave Jones <dave.jones@canonical.com>
# Copyright (c) 2024 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
The exceptions raised by nudge. All derive from :exc:`NotifyError` so callers
can catch everything this package raises with a single clause.
"""


class NotifyError(Exception):
    "Base class for all errors raised by nudge"


class TransportError(NotifyError):
    """
    Raised when the bus is unreachable, or the notification service rejected
    a method call. The underlying DBus error name (if any) is available as
    :attr:`dbus_name`, e.g. "org.freedesktop.DBus.Error.ServiceUnknown".
    """
    def __init__(self, msg, dbus_name=None):
        super().__init__(msg)
        self.dbus_name = dbus_name


class DecodeError(NotifyError):
    """
    Raised when a reply from the notification service does not have the shape
    the protocol requires.
    """


class InvalidArgument(NotifyError, ValueError):
    "Raised when a request is invalid before it ever reaches the bus"


class SubscriptionError(NotifyError):
    "Raised when the bus rejects registration of the signal match rule"


class UnsubscribeError(NotifyError):
    "Raised when the bus rejects removal of the signal match rule"
