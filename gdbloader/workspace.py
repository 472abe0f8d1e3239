# SPDX-License-Identifier: BSD-3-Clause
"""
Scratch directory used to hand chunk data to the debugger.

GDB's ``restore`` command reads its input from a file, so each chunk of an
upload is first written to its own file in a :py:class:`Workspace`.
"""

import os
import shutil
import tempfile

from .errors import FilesystemError
from .log import GdbLoaderLog

_DEFAULT_DIRNAME = 'gdbloader-chunks'


class Workspace:
    """
    A directory holding one staging file per chunk.

    If *path* is not specified, the ``GDBLOADER_WORKSPACE`` environment
    variable is used, falling back to a ``gdbloader-chunks`` directory within
    the system's temporary directory.

    The directory is exclusively owned by one uploader at a time.
    """

    def __init__(self, path=None, **kwargs):
        if path is None:
            path = os.getenv('GDBLOADER_WORKSPACE')

        if path is None:
            path = os.path.join(tempfile.gettempdir(), _DEFAULT_DIRNAME)

        self._path = os.path.abspath(path)
        self.log = kwargs.get('log') or GdbLoaderLog('(workspace)')

    @property
    def path(self) -> str:
        """
        Absolute path of the workspace directory.
        """
        return self._path

    def reset(self):
        """
        Remove the workspace directory, if it exists, and recreate it empty.
        """
        self.log.debug('Preparing workspace at ' + self._path)
        try:
            if os.path.exists(self._path):
                self.log.debug('Removing existing workspace contents')
                shutil.rmtree(self._path)

            os.makedirs(self._path)
        except OSError as e:
            msg = 'Failed to reset workspace {:s}: {:s}'.format(self._path, str(e))
            raise FilesystemError(msg) from e

    def stage(self, chunk_index: int, data: bytes) -> str:
        """
        Write *data* to a new file named after *chunk_index* and return its path.

        The file must not already exist. Its contents are flushed to disk before
        returning, such that the debugger process observes complete contents.
        """
        filename = os.path.join(self._path, 'chunk_{:d}.bin'.format(chunk_index))
        self.log.debug('Staging {:d} bytes to {:s}'.format(len(data), filename))

        try:
            with open(filename, 'xb') as outfile:
                outfile.write(data)
                outfile.flush()
                os.fsync(outfile.fileno())
        except OSError as e:
            msg = 'Failed to stage chunk {:d} to {:s}: {:s}'.format(chunk_index, filename, str(e))
            raise FilesystemError(msg) from e

        return filename
