# SPDX-License-Identifier: BSD-3-Clause
#
# flake8: noqa=F401
"""
gdbloader: Flash firmware to embedded targets through a GDB remote debugging session.

Chunks of a firmware image are written to a RAM buffer on the target with GDB's
``restore`` command, then copied to flash by a routine in the target's own
firmware, which is invoked with GDB's ``call`` command. The checksum returned by
that routine is verified against the host's before proceeding to the next chunk.
"""

from .version import __version__

# Expose items from the various submodules to the top-level namespace

from . import log
from . import parser

from .errors import (GdbLoaderError,
                     SpawnFailure,
                     PipeIOFailure,
                     HandshakeTimeout,
                     ProcessExitedUnexpectedly,
                     MalformedResponse,
                     NoReturnValue,
                     ChecksumMismatch,
                     FilesystemError)

from .monitor   import Monitor
from .progress  import Progress, ProgressBar
from .session   import (Session,
                        SessionState,
                        Policy,
                        CommandTiming,
                        ResponseFrame,
                        DEFAULT_TIMINGS)

from .uploader  import ChunkUploader, Chunk, TransferState, checksum, split_chunks, upload
from .workspace import Workspace
