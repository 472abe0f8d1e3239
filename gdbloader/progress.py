# SPDX-License-Identifier: BSD-3-Clause
"""
This module contains functionality pertaining to tracking
and reporting the progress of long running uploads.
"""

from datetime import datetime
from tqdm import tqdm

from . import log


class Progress:
    """
    This base class implementation is a no-op that can substituted in when API
    usage indicates that no progress should be presented. Otherwise, the
    :py:class:`.ProgressBar` subclass can be used to display the progress status
    of an ongoing operation.

    Basic statistics are recorded internally, however, just to support
    debugging efforts.
    """

    @staticmethod
    def create(total_operations: int, desc: str, **kwargs):
        """
        Create either a ProgressBar or a Progress instance, depending upon the
        the log level. The following levels will result in a progress bar,
        while other levels will not.

        * gdbloader.log.NOTE
        * gdbloader.log.INFO
        * gdbloader.log.WARNING

        Note that the DEBUG level is not included due to emitted information
        being likely to interfere with drawing a progress bar.

        The *total_operations* count indicates how many operations (e.g. bytes)
        are expected to be tracked by this indicator. A 100% completion is displayed
        when the sum of values provided to :py:meth:`.Progress.update()` reaches this value.

        The *desc* string should briefly describe the ongoing operation, in just a few words.
        """
        show  = kwargs.pop('show', True)
        show &= log.get_level() in (log.NOTE, log.INFO, log.WARNING)

        if show:
            cls = ProgressBar
        else:
            cls = Progress

        return cls(total_operations, desc, **kwargs)

    def __init__(self, total_operations: int, desc: str, **_kwargs):
        self._desc  = desc
        self._total = total_operations
        self._count = 0
        self._last_update = None

    @property
    def count(self) -> int:
        """
        Sum of all values passed to :py:meth:`update()` so far.
        """
        return self._count

    def update(self, count=1):
        """
        Record an updated count of operations that have completed since the
        the previous invocation of update().

        i.e. This is relative, not the total since the creation.
        """
        self._last_update = datetime.now()
        self._count += count

    def close(self):
        """
        Close and cleanup progress status.
        """


class ProgressBar(Progress):
    """
    This is currently just a simple wrapper around tqdm, intended to maintain a consistent UX.

    Unless you have a very good reason, do not instantiate this class directly.
    Use :py:meth:`.Progress.create()` instead.
    """

    def __init__(self, total_operations, desc=None, unit='op', **kwargs):
        # SI unit conventions; keep a space between value and unit
        if not unit.startswith(' '):
            unit = ' ' + unit
        super().__init__(total_operations, desc, **kwargs)

        self._pbar = tqdm(total=total_operations, desc=desc, unit=unit,
                          unit_scale=True, leave=False, **kwargs)

    def update(self, count=1):
        super().update(count)
        self._pbar.update(n=count)

    def close(self):
        self._pbar.close()
