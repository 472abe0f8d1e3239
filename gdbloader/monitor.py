# SPDX-License-Identifier: BSD-3-Clause
"""
A gdbloader Monitor can be used to observe the commands written to, and the
lines read from, the debugger console. This can be helpful when debugging an
upload, or when adjusting the per-command timings used by
:py:class:`~gdbloader.session.Session` for a new GDB server or target.
"""

import os
import tempfile

from . import log


class Monitor:
    """
    The :py:class:`.Monitor` class implements a no-op base implementation
    that simply discards all data.
    """
    def __init__(self):
        self._f = None

    _default_file = os.path.join(tempfile.gettempdir(), 'gdbloader-monitor.txt')

    _impls = {}

    @classmethod
    def register(cls, name: str, impl_class):
        """
        Register a :py:class:`Monitor` implementation to be returned by
        :py:meth:`Monitor.create()`.
        """
        if not issubclass(impl_class, Monitor):
            raise ValueError('Implementation must be a subclass of gdbloader.monitor.Monitor')

        cls._impls[name.lower()] = impl_class

    @classmethod
    def create(cls, spec: str):
        """
        Create and return a monitor from a "specification" string structured as follows:

        ``<type>[:arg1,...]``

        Below are the supported types and arguments.

        +-----------------------------------+-------------------------------------------+
        |   Monitor Type                    |  Argument(s)                              |
        +-----------------------------------+-------------------------------------------+
        | :py:class:`'file' <.FileMonitor>` | Filename to write logged console data to. |
        +-----------------------------------+-------------------------------------------+

        """
        if spec is None or len(spec) == 0:
            return Monitor()

        fields = spec.split(':', maxsplit=1)

        name = fields[0].lower()
        try:
            args = fields[1].split(',')
        except IndexError:
            args = []

        try:
            impl = cls._impls[name]
        except KeyError:
            raise ValueError('Invalid Monitor name: ' + name)

        return impl(*args)

    def read(self, stream: str, line: str):
        """
        Insert a *line* read from the debugger's *stream* ('stdout' or 'stderr').
        """
        self._emit('{:s}> {:s}\n'.format(stream, line))

    def write(self, data: str):
        """
        Insert data written to the debugger's standard input.
        """
        self._emit('stdin< ' + data)

    def _emit(self, text: str):
        if self._f is not None:
            self._f.write(text)
            self._f.flush()

    def close(self):
        """
        Close the monitor and its underlying resources.
        """
        if self._f is not None:
            self._f.close()
            self._f = None


class FileMonitor(Monitor):
    """
    A :py:class:`.Monitor` subclass that logs console traffic to a file.
    """

    def __init__(self, path=Monitor._default_file):
        super().__init__()
        log.GdbLoaderLog('(monitor)').note('Writing console traffic to ' + path)
        self._f = open(path, 'w', encoding='utf-8')


# Register default monitors
Monitor.register('file', FileMonitor)
