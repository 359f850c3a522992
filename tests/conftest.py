# nudge: sends desktop notifications and listens for their events over DBus
#
# Copyright (c) 2024 Dave Jones <dave.jones@canonical.com>
# Copyright (c) 2024 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-or-later

import threading
from time import sleep
from unittest import mock

import pytest
from dbus.lowlevel import MESSAGE_TYPE_SIGNAL

from nudge.const import WIRE


class FakeMessage:
    def __init__(self, member, *args, path=WIRE.object_path,
                 interface=WIRE.interface, type=MESSAGE_TYPE_SIGNAL):
        self._member = member
        self._args = list(args)
        self._path = path
        self._interface = interface
        self._type = type

    def get_type(self):
        return self._type

    def get_path(self):
        return self._path

    def get_interface(self):
        return self._interface

    def get_member(self):
        return self._member

    def get_args_list(self):
        return self._args


def emit(bus, member, *args, **kwargs):
    """
    Deliver a signal to the message filter most recently registered with the
    mock *bus*, as the main loop would.
    """
    msg_filter = bus.add_message_filter.call_args.args[0]
    return msg_filter(bus, FakeMessage(member, *args, **kwargs))


def wait_for(predicate, timeout=5):
    for i in range(int(timeout * 100)):
        if predicate():
            return True
        sleep(0.01)
    return predicate()


@pytest.fixture()
def bus():
    return mock.MagicMock()


@pytest.fixture()
def dbus():
    with mock.patch('nudge.notify.dbus') as mock_dbus:
        yield mock_dbus


@pytest.fixture()
def notify_intf(dbus):
    return dbus.Interface()


@pytest.fixture()
def cli_dbus(dbus):
    with (
        mock.patch('nudge.cli.dbus') as mock_dbus,
        mock.patch('nudge.cli.DBusGMainLoop'),
    ):
        yield mock_dbus


@pytest.fixture()
def glib():
    with mock.patch('nudge.cli.GLib') as GLib:
        loop = GLib.MainLoop()
        loop._quit = threading.Event()
        loop._on_run = None

        def idle_add(handler, *args):
            handler(*args)
        def run():
            if loop._on_run is not None:
                loop._on_run()
            assert loop._quit.wait(5)
        def quit():
            loop._quit.set()

        GLib.idle_add.side_effect = idle_add
        loop.run.side_effect = run
        loop.quit.side_effect = quit
        yield GLib
