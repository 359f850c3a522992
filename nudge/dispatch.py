# nudge: sends desktop notifications and listens for their events over DBus
#
# Copyright (c) 2024 Dave Jones <dave.jones@canonical.com>
# Copyright (c) 2024 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
This module contains :class:`SignalDispatcher` which subscribes to the signals
emitted by the freedesktop `notification service`_ and calls user-supplied
callbacks when a notification is closed, or one of its actions is invoked.

Signals are received by a DBus message filter (which runs in whatever thread
is iterating the main loop the bus is attached to) and placed on a queue. A
dedicated thread pulls frames from the queue, decodes them, and hands each
resulting callback to a fresh thread so that slow callbacks, or callbacks
which themselves make calls to the notification service, can never stall
delivery.

.. _notification service: https://specifications.freedesktop.org/notification-spec/
"""

import enum
import queue
import logging
import threading
from collections import namedtuple
from contextlib import ExitStack
from concurrent.futures import ThreadPoolExecutor

from dbus.exceptions import DBusException
from dbus.lowlevel import MESSAGE_TYPE_SIGNAL, HANDLER_RESULT_NOT_YET_HANDLED

from .const import WIRE
from .exc import SubscriptionError, UnsubscribeError
from .notification import CloseReason


logger = logging.getLogger(__name__)


class DispatcherState(enum.Enum):
    """
    The lifecycle of a :class:`SignalDispatcher`. :attr:`CLOSED` is terminal;
    a closed dispatcher cannot be restarted.
    """
    UNINITIALIZED = 'uninitialized'
    SUBSCRIBED = 'subscribed'
    RUNNING = 'running'
    CLOSED = 'closed'


Frame = namedtuple('Frame', ('member', 'body'))
Frame.__doc__ = """
A signal received from the bus: the signal's *member* name and a tuple of its
*body* arguments.
"""


def _is_uint32(value):
    return (
        isinstance(value, int) and not isinstance(value, bool) and
        0 <= value < 2 ** 32)


def decode(frame):
    """
    Decode *frame*, returning a ``(member, args)`` tuple for the two signals
    of the notification interface we understand, or :data:`None` for anything
    else (including recognized signals with a malformed body).
    """
    member, body = frame
    if len(body) == 2:
        msg_id, value = body
        if _is_uint32(msg_id):
            if member == WIRE.notification_closed and _is_uint32(value):
                return member, (int(msg_id), CloseReason(int(value)))
            elif member == WIRE.action_invoked and isinstance(value, str):
                return member, (int(msg_id), str(value))
    return None


class SignalDispatcher:
    """
    Subscribes to NotificationClosed and ActionInvoked signals on *bus* and
    calls *on_closed* (with the notification id and a :class:`CloseReason`)
    or *on_action* (with the notification id and the action's identifier)
    when they arrive. Either callback may be omitted, in which case the
    corresponding signals are simply discarded.

    The bus must be associated with a main loop (e.g. :class:`DBusGMainLoop`)
    for signals to be received at all.

    Note that the subscription is not limited to notifications sent by this
    process; callers should compare the id passed to their callbacks with
    those they received when sending.

    Each callback is run in a new thread. If *max_workers* is specified,
    callbacks are instead queued to a pool of at most that many threads.

    Raises :exc:`~nudge.exc.SubscriptionError` if the bus rejects the
    subscription, after removing any part of it that was already registered.
    :meth:`close` must be called to release the subscription;
    the instance can also be used as a context manager to this end.
    """
    def __init__(self, bus, *, on_closed=None, on_action=None,
                 max_workers=None):
        self._bus = bus
        self._on_closed = on_closed
        self._on_action = on_action
        self._queue = queue.Queue()
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._state = DispatcherState.UNINITIALIZED
        # remove_message_filter needs the very same object that was added
        self._filter = self._enqueue
        if max_workers is None:
            self._executor = None
        else:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix='nudge-callback')

        # Anything that fails part-way through subscribing unwinds whatever
        # was registered before it
        with ExitStack() as stack:
            stack.callback(self._stop)
            try:
                bus.add_match_string(WIRE.match_rule)
                stack.callback(bus.remove_match_string, WIRE.match_rule)
                bus.add_message_filter(self._filter)
                stack.callback(bus.remove_message_filter, self._filter)
                bus.call_on_disconnection(self._disconnected)
            except DBusException as err:
                raise SubscriptionError(
                    f'failed to subscribe to notification signals: {err}'
                ) from err
            self._state = DispatcherState.SUBSCRIBED
            logger.debug('subscribed to %s', WIRE.match_rule)

            self._thread = threading.Thread(
                target=self._receive, name='nudge-dispatch', daemon=True)
            self._state = DispatcherState.RUNNING
            self._thread.start()
            stack.pop_all()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @property
    def on_closed(self):
        "The callback for NotificationClosed signals, or :data:`None`"
        return self._on_closed

    @property
    def on_action(self):
        "The callback for ActionInvoked signals, or :data:`None`"
        return self._on_action

    @property
    def state(self):
        "The current :class:`DispatcherState`"
        return self._state

    @property
    def closed(self):
        return self._state is DispatcherState.CLOSED

    def close(self):
        """
        Stop dispatching signals and remove the subscription from the bus.
        Once this returns, no further callbacks will be started, even for
        signals already received; callbacks already running are not waited
        for.

        Calling this more than once is harmless. Raises
        :exc:`~nudge.exc.UnsubscribeError` if the bus rejects removal of the
        subscription, though dispatching is stopped regardless.
        """
        if self._stop():
            self._unsubscribe()

    def _stop(self):
        """
        Cancel the receive loop. Returns :data:`True` if this call was the one
        that closed the dispatcher.
        """
        self._cancelled.set()
        # The receive loop holds the lock while dispatching; once we have it,
        # no dispatch is in progress and the loop will see the cancellation
        with self._lock:
            if self._state is DispatcherState.CLOSED:
                return False
            self._state = DispatcherState.CLOSED
        # Wake the loop in case it is waiting on an empty queue
        self._queue.put(None)
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
        return True

    def _unsubscribe(self):
        errors = []
        try:
            self._bus.remove_message_filter(self._filter)
        except (DBusException, LookupError) as err:
            errors.append(err)
        try:
            self._bus.remove_match_string(WIRE.match_rule)
        except DBusException as err:
            errors.append(err)
        if errors:
            raise UnsubscribeError(
                f'failed to unsubscribe from notification signals: '
                f'{errors[0]}') from errors[0]
        logger.debug('unsubscribed from %s', WIRE.match_rule)

    def _disconnected(self, connection):
        if self._stop():
            logger.info('bus disconnected; notification signals stopped')

    def _enqueue(self, connection, message):
        """
        The message filter registered with the bus. Queues any signal from
        the notification interface for the receive loop, and lets every
        message continue to other filters on the connection.
        """
        if (
            not self._cancelled.is_set() and
            message.get_type() == MESSAGE_TYPE_SIGNAL and
            message.get_path() == WIRE.object_path and
            message.get_interface() == WIRE.interface
        ):
            self._queue.put(
                Frame(message.get_member(), tuple(message.get_args_list())))
        return HANDLER_RESULT_NOT_YET_HANDLED

    def _receive(self):
        while True:
            frame = self._queue.get()
            with self._lock:
                if self._cancelled.is_set():
                    break
                if frame is not None:
                    self._dispatch(frame)
        logger.debug('signal receive loop finished')

    def _dispatch(self, frame):
        event = decode(frame)
        if event is None:
            logger.debug('ignoring signal %s%r', frame.member, frame.body)
            return
        member, args = event
        if member == WIRE.notification_closed:
            callback = self._on_closed
        else:
            callback = self._on_action
        if callback is not None:
            # TODO bound this by default; one thread per event is fine for
            # human-paced notifications but not for a flood of signals
            if self._executor is None:
                try:
                    threading.Thread(
                        target=self._invoke, args=(callback, args),
                        daemon=True).start()
                except RuntimeError:
                    logger.exception(
                        'unable to start thread for %s%r', member, args)
            else:
                self._executor.submit(self._invoke, callback, args)

    @staticmethod
    def _invoke(callback, args):
        try:
            callback(*args)
        except Exception:
            logger.exception('error in notification callback %r', callback)
