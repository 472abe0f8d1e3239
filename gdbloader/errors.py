# SPDX-License-Identifier: BSD-3-Clause
"""
Exceptions raised by gdbloader.

Every failure raised by the session driver, the response parser, the
workspace and the uploader derives from :py:exc:`GdbLoaderError`, so that a
caller may handle them all with a single ``except`` clause. None of these are
retried internally; each one aborts the operation that raised it.
"""


class GdbLoaderError(Exception):
    """
    Base class for all gdbloader failures.

    The exception message should further explain the nature and circumstances
    of the failure.
    """


class SpawnFailure(GdbLoaderError):
    """
    Raised when the debugger subprocess could not be started.
    """


class PipeIOFailure(GdbLoaderError):
    """
    Raised when writing to, or reading from, a closed or broken debugger stream.
    """


class HandshakeTimeout(GdbLoaderError):
    """
    Raised when attaching to the remote debug server did not complete in time,
    or the debugger reported that the connection could not be established.
    """


class ProcessExitedUnexpectedly(GdbLoaderError):
    """
    Raised when the debugger's output streams closed in the middle of a session.
    """


class MalformedResponse(GdbLoaderError):
    """
    Raised when an expected pattern is absent from the response to a command.

    The offending *command* and the collected *response* lines are retained
    as attributes of the same name.
    """
    def __init__(self, command: str, response, msg=None):
        self.command  = command
        self.response = list(response)

        if msg is None:
            msg = 'Unexpected response to "{:s}": {}'.format(command, self.response)

        super().__init__(msg)


class NoReturnValue(GdbLoaderError):
    """
    Raised when a remote function call that was expected to return a value
    produced no output.
    """


class ChecksumMismatch(GdbLoaderError):
    """
    Raised when the checksum computed by the target for a chunk does not
    match the one computed by the host.

    The *host* and *target* checksums, as well as the *chunk_index*, are
    retained as attributes of the same name.
    """
    def __init__(self, host: int, target: int, chunk_index: int):
        self.host = host
        self.target = target
        self.chunk_index = chunk_index

        msg = 'Checksum mismatch for chunk {:d}: host=0x{:08x}, target=0x{:08x}'
        super().__init__(msg.format(chunk_index, host, target))


class FilesystemError(GdbLoaderError):
    """
    Raised when staging a chunk, resetting the workspace, or reading the
    source image fails.
    """
