# SPDX-License-Identifier: BSD-3-Clause
"""
gdbloader version information
"""

__version__ = '0.1.0'
