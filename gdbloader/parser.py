# SPDX-License-Identifier: BSD-3-Clause
"""
Extraction of values from GDB console responses.

GDB's console is meant for humans; nothing guarantees that the text
scraped here remains stable across GDB releases. The patterns below are
therefore treated as a versioned contract. The GDB major versions they have
been validated against are listed in :py:data:`RESPONSE_FORMAT_GDB_VERSIONS`,
which the integration tests compare against the debugger in use.

All functions in this module are stateless.
"""

import re

from .errors import NoReturnValue

#: GDB major versions whose ``restore``, ``print`` and ``call`` output has been
#: verified to match the patterns in this module.
RESPONSE_FORMAT_GDB_VERSIONS = (10, 11, 12, 13, 14, 15)

_U32_MAX = 0xffff_ffff

# e.g. "Restoring binary file chunk_0.bin into memory (0x200b76a8 to 0x200c76a8)"
_ADDRESS_RANGE_RE = re.compile(r'\(0x(?P<start>[0-9a-fA-F]+) to 0x(?P<end>[0-9a-fA-F]+)\)')

# ASCII digits only
_DECIMAL_RE = re.compile(r'[0-9]+')

# e.g. "GNU gdb (Arm GNU Toolchain 12.3.Rel1 (Build arm-12.35)) 13.2.90.20231008-git"
_GDB_VERSION_RE = re.compile(r'^GNU gdb .*?(?P<major>\d+)\.(?P<minor>\d+)[^ ()]*$')


def extract_address_range(line: str):
    """
    Return the ``(start, end)`` address pair contained in a ``(0x<hex> to 0x<hex>)``
    pattern within *line*.

    ``None`` is returned if the pattern is absent or either value does not fit
    within an unsigned 32-bit integer.
    """
    match = _ADDRESS_RANGE_RE.search(line)
    if match is None:
        return None

    start = int(match.group('start'), 16)
    end   = int(match.group('end'), 16)

    if start > _U32_MAX or end > _U32_MAX:
        return None

    return (start, end)


def find_address_range(lines):
    """
    Return the first address range found by :py:func:`extract_address_range()`
    across all of the provided *lines*, or ``None``.
    """
    for line in lines:
        ret = extract_address_range(line)
        if ret is not None:
            return ret
    return None


def extract_trailing_integer(line: str):
    """
    Parse the last whitespace-delimited token of *line* as an unsigned decimal integer.

    This is intended for ``print`` and ``call`` results of the form ``$12 = 8228421``.
    ``None`` is returned for empty input, a non-numeric token, or a value
    outside of the unsigned 32-bit range.
    """
    tokens = line.split()
    if not tokens:
        return None

    token = tokens[-1]
    if _DECIMAL_RE.fullmatch(token) is None:
        return None

    value = int(token, 10)
    if value > _U32_MAX:
        return None

    return value


def extract_call_result(lines, expects_return: bool) -> str:
    """
    Return the result text of a remote function call.

    If *expects_return* is ``False``, an empty string is returned regardless of
    the content of *lines*. Otherwise, the first line is returned verbatim and a
    :py:exc:`~gdbloader.errors.NoReturnValue` exception is raised if there are no lines.
    """
    if not expects_return:
        return ''

    if len(lines) == 0:
        raise NoReturnValue('Remote function call did not produce a return value')

    return lines[0]


def parse_gdb_version(line: str):
    """
    Extract the ``(major, minor)`` version from the first line of ``gdb --version``
    output, or return ``None`` if it is not recognized.
    """
    match = _GDB_VERSION_RE.match(line.strip())
    if match is None:
        return None
    return (int(match.group('major')), int(match.group('minor')))
