# flake8: noqa=E401
# pylint: disable=missing-module-docstring

from .test_chunk import TestChecksum, TestSplitChunks

from .test_cmdline import TestArgumentParser, TestCreateSession

from .test_log import TestLog, TestProgress

from .test_monitor import TestMonitor

from .test_parser import (
    TestExtractAddressRange,
    TestExtractCallResult,
    TestExtractTrailingInteger,
    TestParseGdbVersion
)

from .test_session import (
    TestPolicy,
    TestSession,
    TestSessionUpload,
    TestStreamMux
)

from .test_string import TestLengthToInt, TestToPositiveInt

from .test_uploader import TestChunkUploader

from .test_workspace import TestWorkspace
