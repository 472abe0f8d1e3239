# SPDX-License-Identifier: BSD-3-Clause
"""
Chunked, checksum-verified firmware upload atop a :py:class:`~gdbloader.session.Session`.

The target firmware is expected to provide two things:

* A RAM buffer, large enough to hold one chunk, into which the debugger
  writes data using its ``restore`` command.

* A copy routine taking ``(flash_offset, length)`` arguments. It copies
  *length* bytes from the RAM buffer to flash at *flash_offset* and returns
  the 32-bit additive checksum of the data it received. (Alternatively, the
  routine may store the checksum in a global variable; see the
  *checksum_variable* parameter of :py:meth:`ChunkUploader.upload()`.)

Chunks are uploaded strictly in order. If the checksum reported by the target
for any chunk differs from the host's, the upload is aborted with a
:py:exc:`~gdbloader.errors.ChecksumMismatch`. Previously written chunks are
left in place.
"""

import time

from .errors import FilesystemError, MalformedResponse, ChecksumMismatch
from .log import GdbLoaderLog
from .parser import extract_trailing_integer
from .progress import Progress
from .workspace import Workspace


def checksum(data: bytes) -> int:
    """
    Return the sum of all byte values in *data*, modulo 2^32.
    """
    return sum(data) & 0xffff_ffff


class Chunk:
    """
    A contiguous slice of a firmware image, starting at *offset* within it.
    """

    def __init__(self, index: int, offset: int, data: bytes):
        self.index = index
        self.offset = offset
        self.data = bytes(data)
        self.checksum = checksum(self.data)

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        s = 'Chunk(index={:d}, offset=0x{:x}, size={:d}, checksum=0x{:08x})'
        return s.format(self.index, self.offset, len(self.data), self.checksum)


def chunk_count(size: int, chunk_size: int) -> int:
    """
    Return the number of *chunk_size* chunks required to hold *size* bytes.
    """
    if chunk_size <= 0:
        raise ValueError('Chunk size must be positive. Got: {:d}'.format(chunk_size))
    return (size + chunk_size - 1) // chunk_size


def split_chunks(data: bytes, chunk_size: int):
    """
    Yield :py:class:`Chunk` objects covering all of *data*, in order.

    All chunks are *chunk_size* bytes long, except for possibly the last one.
    """
    count = chunk_count(len(data), chunk_size)
    for index in range(0, count):
        offset = index * chunk_size
        yield Chunk(index, offset, data[offset:offset + chunk_size])


class TransferState:
    """
    Progress of an upload in flight.
    """

    def __init__(self, total_bytes: int, chunk_count: int, flash_offset: int):
        self.chunk_index = 0
        self.flash_offset = flash_offset
        self.bytes_transferred = 0
        self.total_bytes = total_bytes
        self.chunk_count = chunk_count
        self.start_time = time.monotonic()

    @property
    def elapsed(self) -> float:
        """
        Seconds elapsed since the upload started.
        """
        return time.monotonic() - self.start_time

    def advance(self, byte_count: int):
        """
        Account for a chunk of *byte_count* bytes having been written and verified.
        """
        self.chunk_index += 1
        self.flash_offset += byte_count
        self.bytes_transferred += byte_count


class ChunkUploader:
    """
    Uploads data to target flash, one chunk at a time, using the provided
    :py:class:`~gdbloader.session.Session`.

    Chunks are staged in the provided :py:class:`~gdbloader.workspace.Workspace`.
    If *workspace* is not specified, a default one is used.
    A *log* keyword argument may be used to supply a
    :py:class:`~gdbloader.log.GdbLoaderLog` handle.
    """

    def __init__(self, session, workspace=None, **kwargs):
        self._session = session
        self._workspace = workspace or Workspace()
        self.log = kwargs.get('log') or GdbLoaderLog('(uploader)')

    def _target_checksum(self, copy_function: str, flash_offset: int, byte_count: int,
                         checksum_variable=None) -> int:
        if checksum_variable is None:
            result = self._session.call(copy_function, flash_offset, byte_count, returns=True)
            value = extract_trailing_integer(result)
            if value is None:
                command = 'call {:s}({:d}, {:d})'.format(copy_function, flash_offset, byte_count)
                raise MalformedResponse(command, [result])
            return value

        self._session.call(copy_function, flash_offset, byte_count)
        return self._session.read_variable(checksum_variable)

    def upload(self, data: bytes, buffer: str, chunk_size: int, flash_offset: int,
               copy_function: str, on_progress=None, **kwargs) -> TransferState:
        """
        Write *data* to target flash, starting at *flash_offset*.

        Each *chunk_size* chunk is written to the target RAM *buffer* and then
        copied to flash by invoking *copy_function* with the flash offset and
        number of bytes as its arguments. The checksum returned by the copy
        function is compared against the one computed by the host.

        If a *checksum_variable* keyword argument is provided, the copy function's
        return value is ignored and the checksum is read from the named target
        variable instead.

        If provided, *on_progress* is invoked after each verified chunk as:
        ``on_progress(chunk_index, chunk_count, bytes_transferred, total_bytes, elapsed)``

        Specify a *show_progress=False* keyword argument to disable the progress
        bar printed during the upload.

        The final :py:class:`TransferState` is returned.
        """
        checksum_variable = kwargs.get('checksum_variable', None)

        count = chunk_count(len(data), chunk_size)
        state = TransferState(len(data), count, flash_offset)

        msg = 'Uploading {:d} bytes to flash @ 0x{:08x} in {:d} chunk(s) of up to {:d} bytes'
        self.log.info(msg.format(len(data), flash_offset, count, chunk_size))

        self._workspace.reset()

        desc = 'Uploading {:d} bytes'.format(len(data))
        show = kwargs.get('show_progress', True)
        progress = Progress.create(len(data), desc, unit='B', show=show)

        try:
            for chunk in split_chunks(data, chunk_size):
                msg = 'Chunk {:d}/{:d}: {:d} bytes, checksum=0x{:08x}, flash offset=0x{:08x}'
                self.log.debug(msg.format(chunk.index + 1, count, len(chunk),
                                          chunk.checksum, state.flash_offset))

                filename = self._workspace.stage(chunk.index, chunk.data)

                # The debugger's reported count is authoritative
                written = self._session.restore(buffer, filename)
                if written != len(chunk):
                    msg = 'Chunk {:d}: debugger reported writing {:d} bytes, expected {:d}'
                    self.log.warning(msg.format(chunk.index, written, len(chunk)))

                target_checksum = self._target_checksum(copy_function, state.flash_offset,
                                                        written, checksum_variable)

                if target_checksum != chunk.checksum:
                    msg = 'Chunk {:d}: host checksum 0x{:08x} != target checksum 0x{:08x}'
                    self.log.error(msg.format(chunk.index, chunk.checksum, target_checksum))
                    raise ChecksumMismatch(chunk.checksum, target_checksum, chunk.index)

                state.advance(written)
                progress.update(written)

                if on_progress is not None:
                    on_progress(chunk.index, count, state.bytes_transferred,
                                state.total_bytes, state.elapsed)
        finally:
            progress.close()

        msg = 'Uploaded {:d} bytes in {:.1f} s'
        self.log.info(msg.format(state.bytes_transferred, state.elapsed))
        return state

    def upload_from_file(self, filename: str, buffer: str, chunk_size: int, flash_offset: int,
                         copy_function: str, on_progress=None, **kwargs) -> TransferState:
        """
        Read the entire contents of *filename* and upload it using :py:meth:`upload()`.
        """
        try:
            with open(filename, 'rb') as infile:
                data = infile.read()
        except OSError as e:
            raise FilesystemError('Failed to read {:s}: {:s}'.format(filename, str(e))) from e

        self.log.note('Loaded {:d} bytes from {:s}'.format(len(data), filename))
        return self.upload(data, buffer, chunk_size, flash_offset, copy_function,
                           on_progress, **kwargs)


def upload(session, filename: str, buffer: str, chunk_size: int, flash_offset: int,
           copy_function: str, on_progress=None, **kwargs) -> TransferState:
    """
    Upload the contents of *filename* to target flash via *session*.

    This is a convenience wrapper around :py:meth:`ChunkUploader.upload_from_file()`.
    The *workspace* and *log* keyword arguments are passed to the
    :py:class:`ChunkUploader` constructor; all others are passed to
    :py:meth:`ChunkUploader.upload()`.
    """
    uploader = ChunkUploader(session, kwargs.pop('workspace', None), log=kwargs.pop('log', None))
    return uploader.upload_from_file(filename, buffer, chunk_size, flash_offset,
                                     copy_function, on_progress, **kwargs)
