# nudge: sends desktop notifications and listens for their events over DBus
#
# Copyright (c) 2024 Dave Jones <dave.jones@canonical.com>
# Copyright (c) 2024 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from collections import namedtuple


WireContract = namedtuple('WireContract', (
    'bus_name',
    'object_path',
    'interface',
    'notify',
    'notify_signature',
    'close_notification',
    'close_notification_signature',
    'get_capabilities',
    'get_server_information',
    'notification_closed',
    'action_invoked',
    'match_rule',
))

WIRE = WireContract(
    bus_name='org.freedesktop.Notifications',
    object_path='/org/freedesktop/Notifications',
    interface='org.freedesktop.Notifications',
    notify='Notify',
    notify_signature='susssasa{sv}i',
    close_notification='CloseNotification',
    close_notification_signature='u',
    get_capabilities='GetCapabilities',
    get_server_information='GetServerInformation',
    notification_closed='NotificationClosed',
    action_invoked='ActionInvoked',
    match_rule=(
        "type='signal',"
        "path='/org/freedesktop/Notifications',"
        "interface='org.freedesktop.Notifications'"),
)

# The wire value of expire_timeout is an INT32
EXPIRE_TIMEOUT_MAX = 2 ** 31 - 1
