# nudge: sends desktop notifications and listens for their events over DBus
#
# Copyright (c) 2024 Dave Jones <dave.jones@canonical.com>
# Copyright (c) 2024 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-or-later

from datetime import timedelta

import pytest
import dbus

from nudge.exc import InvalidArgument
from nudge.notification import *


def test_notification_defaults():
    note = Notification('Foo Info')
    assert note.summary == 'Foo Info'
    assert note.body == ''
    assert note.app_name == ''
    assert note.app_icon == ''
    assert note.actions == ()
    assert dict(note.hints) == {}
    assert note.expiry is Expiry.SERVER_DEFAULT
    assert note.replaces_id == 0
    assert note.wire_actions == []


def test_notification_immutable():
    note = Notification('Foo Info', hints={'category': 'device'})
    with pytest.raises(AttributeError):
        note.summary = 'Bar Info'
    with pytest.raises(TypeError):
        note.hints['category'] = 'network'


def test_notification_hints_copied():
    hints = {'category': 'device'}
    note = Notification('Foo Info', hints=hints)
    hints['urgency'] = 2
    assert dict(note.hints) == {'category': 'device'}


def test_notification_actions():
    note = Notification(
        'Foo Error',
        actions=[('confirm', 'Confirm.'), ('cancel', 'Cancel.')])
    assert note.actions == (
        Action('confirm', 'Confirm.'), Action('cancel', 'Cancel.'))
    assert note.actions[1].id == 'cancel'
    assert note.actions[1].label == 'Cancel.'
    assert note.wire_actions == ['confirm', 'Confirm.', 'cancel', 'Cancel.']


def test_expire_timeout():
    assert Notification('Foo').expire_timeout == -1
    assert Notification(
        'Foo', expiry=Expiry.SERVER_DEFAULT).expire_timeout == -1
    assert Notification('Foo', expiry=Expiry.NEVER).expire_timeout == 0
    assert Notification(
        'Foo', expiry=Expiry.TIMEOUT,
        timeout=timedelta(milliseconds=5000)).expire_timeout == 5000
    assert Notification(
        'Foo', expiry=Expiry.TIMEOUT,
        timeout=timedelta(seconds=2.5)).expire_timeout == 2500
    assert Notification(
        'Foo', expiry=Expiry.TIMEOUT, timeout=750).expire_timeout == 750
    # The timeout is ignored by other policies
    assert Notification(
        'Foo', expiry=Expiry.NEVER,
        timeout=timedelta(seconds=5)).expire_timeout == 0


def test_expire_timeout_invalid():
    with pytest.raises(InvalidArgument):
        Notification('Foo', expiry=Expiry.TIMEOUT)
    with pytest.raises(InvalidArgument):
        Notification('Foo', expiry=Expiry.TIMEOUT, timeout=timedelta(0))
    with pytest.raises(InvalidArgument):
        Notification('Foo', expiry=Expiry.TIMEOUT, timeout=-5)
    with pytest.raises(InvalidArgument):
        Notification(
            'Foo', expiry=Expiry.TIMEOUT, timeout=timedelta(days=30))
    with pytest.raises(InvalidArgument):
        Notification('Foo', expiry='sometime')
    # InvalidArgument is also a ValueError
    with pytest.raises(ValueError):
        Notification('Foo', expiry=Expiry.TIMEOUT)


def test_expiry_by_value():
    assert Notification('Foo', expiry='never').expiry is Expiry.NEVER


def test_replaces_id_invalid():
    with pytest.raises(InvalidArgument):
        Notification('Foo', replaces_id=-1)
    with pytest.raises(InvalidArgument):
        Notification('Foo', replaces_id=2 ** 32)
    assert Notification('Foo', replaces_id=7).replaces_id == 7


def test_with_urgency():
    note = Notification('Foo Error', hints={'category': 'device'})
    urgent = note.with_urgency(Urgency.CRITICAL)
    assert urgent is not note
    assert dict(note.hints) == {'category': 'device'}
    assert dict(urgent.hints) == {'category': 'device', 'urgency': 2}
    assert isinstance(urgent.hints['urgency'], dbus.Byte)
    assert urgent.summary == 'Foo Error'
    assert note.with_urgency(0).hints['urgency'] == Urgency.LOW
    with pytest.raises(InvalidArgument):
        note.with_urgency(3)


def test_close_reason():
    assert CloseReason(1) is CloseReason.EXPIRED
    assert CloseReason(2) is CloseReason.DISMISSED_BY_USER
    assert CloseReason(3) is CloseReason.DISMISSED_BY_CALL
    assert CloseReason(4) is CloseReason.UNDEFINED
    assert CloseReason(99) is CloseReason.OTHER
    assert CloseReason(0) is CloseReason.OTHER


def test_close_reason_str():
    assert str(CloseReason.EXPIRED) == 'Expired'
    assert str(CloseReason.DISMISSED_BY_USER) == 'DismissedByUser'
    assert str(CloseReason.DISMISSED_BY_CALL) == 'ClosedByCall'
    assert str(CloseReason.UNDEFINED) == 'Unknown'
    assert str(CloseReason(99)) == 'Other'


def test_server_info():
    info = ServerInfo('foo-shell', 'FOO', '1.0', '1.2')
    assert info.name == 'foo-shell'
    assert info.spec_version == '1.2'
