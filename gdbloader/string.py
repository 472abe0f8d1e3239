# SPDX-License-Identifier: BSD-3-Clause
"""
Miscellaneous string conversion and parsing functions
"""

# Uppercase'd for case-insensitivity
_BYTE_LENGTH_SUFFIXES = {
    'KB':   1000,
    'K':    1024,
    'KIB':  1024,
    'MB':   1000 * 1000,
    'M':    1024 * 1024,
    'MIB':  1024 * 1024,
    'GB':   1000 * 1000 * 1000,
    'G':    1024 * 1024 * 1024,
    'GIB':  1024 * 1024 * 1024,
}


def to_positive_int(string: str, desc='value') -> int:
    """
    Convert a string to a non-negative integer. Prefixes such as ``0x`` are honored.

    A :py:exc:`ValueError` is raised if the string is not a valid, non-negative integer.
    """
    try:
        ret = int(string, 0)
    except ValueError:
        raise ValueError('Invalid {:s}: {:s}'.format(desc, string))

    if ret < 0:
        raise ValueError('Invalid {:s}: {:s} (cannot be negative)'.format(desc, string))

    return ret


def length_to_int(len_str: str, desc='length') -> int:
    """
    Convert a numeric string with one of the following (case insensitive) length suffixes
    into its corresponding integer representation.

    +-----------+---------------------------+
    |   Suffix  | Multiplication Factor     |
    +===========+===========================+
    |     kB    | 1,000                     |
    +-----------+---------------------------+
    |  K or KiB | 1,024                     |
    +-----------+---------------------------+
    |     MB    | 1,000,000 (1,000 ^ 2)     |
    +-----------+---------------------------+
    |  M or MiB | 1,048,576 (1,024 ^ 2)     |
    +-----------+---------------------------+
    |     GB    | 1,000,000,000 (1,000 ^ 3) |
    +-----------+---------------------------+
    |  G or GiB | 1,073,741,824 (1,024 ^ 3) |
    +-----------+---------------------------+

    """
    try:
        # No suffix? No problem.
        return to_positive_int(len_str, desc)
    except ValueError:
        pass

    _len_str = len_str.replace(' ', '').upper()

    for suffix, factor in _BYTE_LENGTH_SUFFIXES.items():
        if _len_str.endswith(suffix):
            val_str = _len_str[:-len(suffix)]
            return to_positive_int(val_str, desc) * factor

    raise ValueError('Invalid {:s}: {:s}'.format(desc, len_str))
