# SPDX-License-Identifier: BSD-3-Clause
#
"""
Utility functions for integration tests
"""

import random
import time

from os      import makedirs, path
from os.path import dirname, realpath

_THIS_DIR = dirname(realpath(__file__))


def create_resource_dir(test_dir, test_subdir='') -> str:
    """
    Create a test-specific resource directory and subdirectory.

    The resulting path is returned.
    """
    resource_dir = path.join(_THIS_DIR, 'resources', test_dir, test_subdir)
    makedirs(resource_dir, 0o770, exist_ok=True)
    return resource_dir


def random_pattern(size: int, seed: int = 0) -> bytes:
    """
    Return `size` random bytes.
    """
    random.seed(seed)
    return bytes(random.randint(0, 255) for _ in range(0, size))


def incrementing_pattern(size: int) -> bytes:
    """
    Return `size` bytes with a pattern of incrementing byte values.
    """
    return bytes(i & 0xff for i in range(0, size))


def erased_pattern(size: int) -> bytes:
    """
    Return `size` bytes of 0xff, matching the contents of erased NOR flash.

    Every chunk of this pattern has the largest possible checksum for its size.
    """
    return b'\xff' * size


def now_str() -> str:
    """
    Return the current time in seconds since the Unix Epoch.
    """
    return str(int(time.time()))


def save_file(filename: str, data, mode='w'):
    """
    Write data to the specified file.
    """
    with open(filename, mode) as outfile:
        outfile.write(data)
