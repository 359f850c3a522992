# nudge: sends desktop notifications and listens for their events over DBus
#
# Copyright (c) 2024 Dave Jones <dave.jones@canonical.com>
# Copyright (c) 2024 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
The value types exchanged with the notification service: the outbound
:class:`Notification` request, the :class:`ServerInfo` reply, and the
enumerations for expiry policy, urgency, and the reasons a notification was
closed.
"""

import enum
from datetime import timedelta
from collections import namedtuple
from types import MappingProxyType

import dbus

from .const import EXPIRE_TIMEOUT_MAX
from .exc import InvalidArgument


class Expiry(enum.Enum):
    """
    The policy governing when the server automatically removes a
    notification. :attr:`SERVER_DEFAULT` leaves it up to the server,
    :attr:`NEVER` asks the server never to expire it, and :attr:`TIMEOUT`
    uses the :attr:`Notification.timeout` of the request.
    """
    SERVER_DEFAULT = 'server-default'
    TIMEOUT = 'timeout'
    NEVER = 'never'


class Urgency(enum.IntEnum):
    """
    Values of the "urgency" hint. See :meth:`Notification.with_urgency`.
    """
    LOW = 0
    NORMAL = 1
    CRITICAL = 2


class CloseReason(enum.IntEnum):
    """
    The reason given by the server in a NotificationClosed signal. Codes
    outside those defined by the `Desktop Notifications Specification`_
    decode to :attr:`OTHER` rather than raising an error.

    .. _Desktop Notifications Specification:
        https://specifications.freedesktop.org/notification-spec/latest/
    """
    OTHER = 0
    EXPIRED = 1
    DISMISSED_BY_USER = 2
    DISMISSED_BY_CALL = 3
    UNDEFINED = 4

    @classmethod
    def _missing_(cls, value):
        return cls.OTHER

    def __str__(self):
        return {
            CloseReason.EXPIRED: 'Expired',
            CloseReason.DISMISSED_BY_USER: 'DismissedByUser',
            CloseReason.DISMISSED_BY_CALL: 'ClosedByCall',
            CloseReason.UNDEFINED: 'Unknown',
        }.get(self, 'Other')


Action = namedtuple('Action', ('id', 'label'))
Action.__doc__ = """
An action the user may invoke on a notification. The *id* is reported back in
ActionInvoked signals, and *label* is the string displayed to the user.
"""

ServerInfo = namedtuple('ServerInfo', ('name', 'vendor', 'version',
                                       'spec_version'))
ServerInfo.__doc__ = """
The identity of the notification server, as returned by
GetServerInformation.
"""


class Notification(namedtuple('Notification', (
    'summary', 'body', 'app_name', 'app_icon', 'actions', 'hints', 'expiry',
    'timeout', 'replaces_id',
))):
    """
    An immutable notification request.

    The *summary*, a brief :class:`str` summarizing the message, must be
    included. The *body* is the full message which may optionally contain a
    limited form of XML markup, if "body-markup" is included in the server's
    capabilities.

    The optional *app_name* and *app_icon* strings identify the application
    sending the notification.

    The *actions* parameter specifies a sequence of ``(id, label)`` tuples (or
    :class:`Action` instances) where *id* is the action identifier, and
    *label* is the string to display for the action. Order is preserved.

    The *hints* parameter is a mapping of optional hints passed to the
    notification service. See :meth:`with_urgency` for the most common one.

    The *expiry* is an :class:`Expiry` policy. When it is
    :attr:`Expiry.TIMEOUT`, *timeout* must be given as a positive
    :class:`~datetime.timedelta` (or a number of milliseconds).

    If *replaces_id* is non-zero, the server will atomically replace the
    notification with that identifier, and return the same identifier.
    """
    __slots__ = ()

    def __new__(cls, summary, *, body='', app_name='', app_icon='',
                actions=None, hints=None, expiry=Expiry.SERVER_DEFAULT,
                timeout=None, replaces_id=0):
        actions = tuple(Action(*action) for action in (actions or ()))
        hints = MappingProxyType(dict(hints or {}))
        try:
            expiry = Expiry(expiry)
        except ValueError:
            raise InvalidArgument(
                f'invalid expiry policy {expiry!r}') from None
        if expiry is Expiry.TIMEOUT:
            if timeout is None:
                raise InvalidArgument(
                    'timeout is required when expiry is Expiry.TIMEOUT')
            if not isinstance(timeout, timedelta):
                timeout = timedelta(milliseconds=timeout)
            ms = timeout // timedelta(milliseconds=1)
            if not 0 < ms <= EXPIRE_TIMEOUT_MAX:
                raise InvalidArgument(
                    f'timeout must be between 1ms and {EXPIRE_TIMEOUT_MAX}ms')
        if not 0 <= replaces_id < 2 ** 32:
            raise InvalidArgument(f'invalid replaces_id {replaces_id}')
        return super().__new__(
            cls, summary, body, app_name, app_icon, actions, hints, expiry,
            timeout, replaces_id)

    @property
    def wire_actions(self):
        """
        The actions flattened into the alternating identifier, label list
        the Notify method expects.
        """
        return [item for (id, label) in self.actions for item in (id, label)]

    @property
    def expire_timeout(self):
        """
        The INT32 expire_timeout value for the Notify method: -1 for the
        server's default, 0 for never, or the timeout in milliseconds.
        """
        if self.expiry is Expiry.TIMEOUT:
            return self.timeout // timedelta(milliseconds=1)
        elif self.expiry is Expiry.NEVER:
            return 0
        else:
            return -1

    def with_urgency(self, urgency):
        """
        Return a copy of this notification with the "urgency" hint set to
        *urgency*, a :class:`Urgency` (or its integer value).
        """
        try:
            urgency = Urgency(urgency)
        except ValueError:
            raise InvalidArgument(f'invalid urgency {urgency!r}') from None
        hints = dict(self.hints)
        hints['urgency'] = dbus.Byte(urgency)
        return self._replace(hints=MappingProxyType(hints))
