# nudge: sends desktop notifications and listens for their events over DBus
#
# Copyright (c) 2024 Dave Jones <dave.jones@canonical.com>
# Copyright (c) 2024 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
The "main" entry point for the :program:`nudge-send` application, which sends
a notification from the command line, optionally waiting for it to be closed
and reporting any actions the user invoked on it.
"""

import sys
import logging
import argparse
from datetime import timedelta
from importlib.metadata import version

import gi
gi.require_version('GLib', '2.0')
from gi.repository import GLib
import dbus
import dbus.mainloop.glib
from dbus.mainloop.glib import DBusGMainLoop
from dbus.exceptions import DBusException

from . import lang
from .exc import NotifyError
from .notification import Notification, Expiry, Urgency
from .notify import (
    Notifications,
    send,
    dismiss,
    get_capabilities,
    get_server_info,
)


def key_value(s):
    """
    Parse *s*, a string of the form "KEY=VALUE", into a ``(key, value)``
    tuple.
    """
    key, sep, value = s.partition('=')
    if not sep or not key:
        raise argparse.ArgumentTypeError(
            lang._('expected KEY=VALUE, not {s!r}').format(s=s))
    return key, value


def get_parser():
    parser = argparse.ArgumentParser(
        description=lang._(
            'Send a desktop notification via the freedesktop notification '
            'service'))
    parser.add_argument(
        '--version', action='version', version=version('nudge'))
    parser.add_argument(
        'summary', nargs='?', default=None,
        help=lang._('The summary of the notification'))
    parser.add_argument(
        'body', nargs='?', default='',
        help=lang._('The body of the notification'))
    parser.add_argument(
        '-a', '--app-name', default='', metavar='APP',
        help=lang._('The name of the application sending the notification'))
    parser.add_argument(
        '-i', '--icon', default='',
        help=lang._('The icon name to display with the notification'))
    parser.add_argument(
        '-u', '--urgency', choices=('low', 'normal', 'critical'),
        default=None,
        help=lang._('The urgency of the notification'))
    parser.add_argument(
        '-t', '--expire-time', type=int, default=None, metavar='MS',
        help=lang._(
            'The time in milliseconds after which the notification expires; '
            '0 means never. Defaults to the server\'s policy'))
    parser.add_argument(
        '-A', '--action', dest='actions', type=key_value, action='append',
        default=[], metavar='ID=LABEL',
        help=lang._(
            'Add an action with the identifier ID, labelled LABEL. May be '
            'given multiple times'))
    parser.add_argument(
        '-H', '--hint', dest='hints', type=key_value, action='append',
        default=[], metavar='KEY=VALUE',
        help=lang._('Add a string hint. May be given multiple times'))
    parser.add_argument(
        '-r', '--replace-id', type=int, default=0, metavar='ID',
        help=lang._('The id of an existing notification to replace'))
    parser.add_argument(
        '-w', '--wait', action='store_true',
        help=lang._(
            'Wait for the notification to be closed, printing the '
            'identifier of any action invoked and the reason for closing'))
    parser.add_argument(
        '--system', action='store_true',
        help=lang._('Use the system bus instead of the session bus'))
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help=lang._('Log debugging information to stderr'))
    modes = parser.add_mutually_exclusive_group()
    modes.add_argument(
        '--close', type=int, default=None, metavar='ID',
        help=lang._('Close the notification with the specified id'))
    modes.add_argument(
        '--capabilities', action='store_true',
        help=lang._('List the capabilities of the notification service'))
    modes.add_argument(
        '--server-info', action='store_true',
        help=lang._('Show the identity of the notification service'))
    return parser


class Waiter:
    """
    Holds the state of :program:`nudge-send --wait`; the callbacks of this
    class are called from the dispatcher's threads, and hand control back to
    the GLib *main_loop* when the notification is closed.
    """
    def __init__(self, main_loop):
        self.main_loop = main_loop
        self.msg_id = None
        self.reason = None

    def on_action(self, msg_id, action_key):
        if msg_id == self.msg_id:
            print(action_key, flush=True)

    def on_closed(self, msg_id, reason):
        if msg_id == self.msg_id:
            self.reason = reason
            GLib.idle_add(self.main_loop.quit)


def make_notification(config):
    """
    Construct a :class:`~nudge.notification.Notification` from the parsed
    command line *config*.
    """
    if config.expire_time is None:
        expiry = {'expiry': Expiry.SERVER_DEFAULT}
    elif config.expire_time == 0:
        expiry = {'expiry': Expiry.NEVER}
    else:
        expiry = {
            'expiry': Expiry.TIMEOUT,
            'timeout': timedelta(milliseconds=config.expire_time),
        }
    note = Notification(
        config.summary, body=config.body, app_name=config.app_name,
        app_icon=config.icon, actions=config.actions,
        hints=dict(config.hints), replaces_id=config.replace_id, **expiry)
    if config.urgency is not None:
        note = note.with_urgency(Urgency[config.urgency.upper()])
    return note


def main(args=None):
    lang.init()
    parser = get_parser()
    config = parser.parse_args(args)
    if config.expire_time is not None and config.expire_time < 0:
        parser.error(lang._('--expire-time must not be negative'))
    if config.replace_id < 0:
        parser.error(lang._('--replace-id must not be negative'))
    if not (config.close is not None or config.capabilities or
            config.server_info or config.summary is not None):
        parser.error(lang._('a summary is required'))
    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format='%(name)s: %(levelname)s: %(message)s')

    # Integrate dbus-python with GLib so that signals are delivered; the
    # callbacks run in other threads so libdbus must be made thread-aware
    DBusGMainLoop(set_as_default=True)
    dbus.mainloop.glib.threads_init()
    try:
        bus = dbus.SystemBus() if config.system else dbus.SessionBus()
        if config.close is not None:
            dismiss(config.close, bus=bus)
        elif config.capabilities:
            for cap in get_capabilities(bus=bus):
                print(cap)
        elif config.server_info:
            info = get_server_info(bus=bus)
            print(lang._('Name:    {info.name}').format(info=info))
            print(lang._('Vendor:  {info.vendor}').format(info=info))
            print(lang._('Version: {info.version}').format(info=info))
            print(lang._('Spec:    {info.spec_version}').format(info=info))
        else:
            note = make_notification(config)
            if config.wait:
                waiter = Waiter(GLib.MainLoop())
                with Notifications(
                    bus, on_action=waiter.on_action,
                    on_closed=waiter.on_closed
                ) as notifier:
                    waiter.msg_id = notifier.send(note)
                    print(waiter.msg_id, flush=True)
                    waiter.main_loop.run()
                print(waiter.reason)
            else:
                print(send(note, bus=bus))
    except (NotifyError, DBusException) as err:
        print(err, file=sys.stderr, flush=True)
        return 1
    return 0
