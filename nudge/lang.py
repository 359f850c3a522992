# nudge: sends desktop notifications and listens for their events over DBus
#
# Copyright (c) 2024 Dave Jones <dave.jones@canonical.com>
# Copyright (c) 2024 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Translation of the user-facing strings of :program:`nudge-send`. The library
modules never translate anything; only the command line front-end calls
:func:`init`.
"""

import locale
import gettext
from pathlib import Path


LOCALE_DIR = Path(__file__).parent / 'locale'

_ = gettext.gettext


def init():
    """
    Set the locale from the environment (falling back to the "C" locale if
    the environment's locale is unavailable) and select the message catalog
    for this package.
    """
    try:
        locale.setlocale(locale.LC_ALL, '')
    except locale.Error:
        locale.setlocale(locale.LC_ALL, 'C')
    gettext.bindtextdomain(__package__, str(LOCALE_DIR))
    gettext.textdomain(__package__)
