# SPDX-License-Identifier: BSD-3-Clause
"""
gdbloader provides simple logging functionality atop of
Python's own ``logging`` module.

Below are the available levels in order of decreasing verbosity, and with their
associated message prefix symbols.

+----------------+-------------+------------------------------------------------------------------+
|   Level Name   | Msg. Prefix | Description                                                      |
+================+=============+==================================================================+
| debug          |   ``[#]``   | Highly verbose information, including every console line         |
+----------------+-------------+------------------------------------------------------------------+
| note           |   ``[*]``   | Verbose status and progress information intended for end user    |
+----------------+-------------+------------------------------------------------------------------+
| info           |   ``[+]``   | Higher-level status and progress information - usually success   |
+----------------+-------------+------------------------------------------------------------------+
| warning        |   ``[!]``   | Similar to info, but for reporting undesirable status            |
+----------------+-------------+------------------------------------------------------------------+
| error          |   ``[X]``   | Describes what is failing and why to an end user                 |
+----------------+-------------+------------------------------------------------------------------+
| silent         |     N/A     | gdbloader does not write log output to stderr                    |
+----------------+-------------+------------------------------------------------------------------+

Importing this module does not install any log handler. Applications (e.g. the
``gdbloader-flash`` script) call :py:func:`configure()` once, which attaches a
stream handler and sets the level according to its argument, or the level name
in the ``GDBLOADER_LOG_LEVEL`` environment variable, defaulting to ``'note'``.

Library components do not write to a shared singleton. Each one accepts an
explicit *log* handle (a :py:class:`GdbLoaderLog`) and otherwise creates its
own prefixed instance.

During long running uploads, progress bars are only displayed when the log level
is set to *note*, *info*, or *warning*.
"""

import os
import platform
import sys
import logging

DEBUG   = logging.DEBUG
NOTE    = logging.DEBUG + (logging.INFO - logging.DEBUG) // 2
INFO    = logging.INFO
WARNING = logging.WARN
ERROR   = logging.ERROR
SILENT  = logging.CRITICAL + (logging.CRITICAL - logging.ERROR)

LOGGER_NAME = 'gdbloader'


class GdbLoaderLog:
    """
    This class implements gdbloader's leveled, prefixed logging.

    Instances created with the same *logger_name* share the same underlying
    Python logger, and therefore the same level and handlers.
    """

    _level_name_map = {
        'debug':    DEBUG,
        'note':     NOTE,
        'info':     INFO,
        'warn':     WARNING,
        'warning':  WARNING,
        'error':    ERROR,
        'fatal':    ERROR,
        'critical': ERROR,
        'silent':   SILENT
    }

    def __init__(self, prefix='', logger_name=LOGGER_NAME):
        """
        Create a log instance with an optional *prefix* string.

        The *logger_name* is used to obtain the underlying Python logging instance.
        """

        _pfx_debug   = '[#] '
        _pfx_note    = '[*] '
        _pfx_info    = '[+] '
        _pfx_warning = '[!] '
        _pfx_error   = '[X] '

        # Add color when a TTY that can probably handle it is in use
        if platform.system() in ('Linux', 'Darwin') and sys.stderr.isatty():
            _pfx_debug   = '\033[34m'   + _pfx_debug   + '\033[0m'
            _pfx_note    = '\033[36m'   + _pfx_note    + '\033[0m'
            _pfx_info    = '\033[32m'   + _pfx_info    + '\033[0m'
            _pfx_warning = '\033[33m'   + _pfx_warning + '\033[0m'
            _pfx_error   = '\033[31m'   + _pfx_error   + '\033[0m'

        if prefix != '' and not prefix.endswith(' '):
            prefix += ' '

        self._pfx_debug   = _pfx_debug + prefix
        self._pfx_note    = _pfx_note + prefix
        self._pfx_info    = _pfx_info + prefix
        self._pfx_warning = _pfx_warning + prefix
        self._pfx_error   = _pfx_error + prefix

        self.logger = logging.getLogger(logger_name)

    @classmethod
    def level_from_name(cls, level):
        """
        Convert a level name (e.g. ``'note'``) to its integer value.
        Integers are returned as-is.
        """
        if isinstance(level, str):
            try:
                return cls._level_name_map[level.lower()]
            except KeyError:
                raise ValueError('Invalid log level: ' + level)
        return level

    @property
    def level(self):
        """
        Current log level
        """
        return self.logger.getEffectiveLevel()

    @level.setter
    def level(self, level):
        self.logger.setLevel(self.level_from_name(level))

    def debug(self, *args, **kwargs):
        """
        Write a debug-level message to the log.

        This is used for console traffic and other detailed diagnostic
        information that most users will never need to see.
        """
        self.logger.log(DEBUG, *((self._pfx_debug + args[0],) + args[1:]), **kwargs)

    def note(self, *args, **kwargs):
        """
        Write a note-level message to the log.

        This should be used for detailed information pertaining to an operation,
        especially for lower-level operations.
        """
        self.logger.log(NOTE, *((self._pfx_note + args[0],) + args[1:]), **kwargs)

    def info(self, *args, **kwargs):
        """
        Write an info-level message to the log.

        This should be used to notify the user of an high-level operation
        starting or completing successfully.
        """
        self.logger.log(INFO, *((self._pfx_info + args[0],) + args[1:]), **kwargs)

    def warning(self, *args, **kwargs):
        """
        Write a warning-level message to the log.

        This should be used to report unexpected behavior that does not cause an
        operation to fail, but that might be problematic later.
        """
        self.logger.log(WARNING, *((self._pfx_warning + args[0],) + args[1:]), **kwargs)

    def error(self, *args, **kwargs):
        """
        Write an error-level message to the log.

        This should be used to report issues or unexpected behavior that will
        immediately result in a failed operation.
        """
        self.logger.log(ERROR, *((self._pfx_error + args[0],) + args[1:]), **kwargs)


_handler = None


def configure(level=None, stream=None) -> GdbLoaderLog:
    """
    Install a stream handler on the gdbloader logger and set its level.

    If *level* is ``None``, the level name in the ``GDBLOADER_LOG_LEVEL``
    environment variable is used, or ``'note'`` if it is not set.
    Calling this more than once only updates the level.

    Returns a :py:class:`GdbLoaderLog` handle suitable for application use.
    """
    global _handler  # pylint: disable=global-statement

    ret = GdbLoaderLog()

    if _handler is None:
        _handler = logging.StreamHandler(stream)
        ret.logger.addHandler(_handler)

    if level is None:
        level = os.getenv('GDBLOADER_LOG_LEVEL', 'note')

    ret.level = level
    return ret


def get_level() -> int:
    """
    Get the current effective level of gdbloader's logger.
    """
    return logging.getLogger(LOGGER_NAME).getEffectiveLevel()


def set_level(level):
    """
    Set gdbloader's logger to the specified level.

    This may be one of the integer constants defined in this module
    (e.g. ``gdbloader.log.NOTE``) or one of the following strings:

        * ``'debug'``
        * ``'note'``
        * ``'info'``
        * ``'warning'``
        * ``'error'``
        * ``'silent'``

    """
    logging.getLogger(LOGGER_NAME).setLevel(GdbLoaderLog.level_from_name(level))
