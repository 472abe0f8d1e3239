# SPDX-License-Identifier: BSD-3-Clause
#
# Relax style and documentation requirements for unit tests.
# pylint: disable=missing-function-docstring,missing-class-docstring,too-few-public-methods
#

"""
Unit tests for gdbloader.monitor
"""

import os
import tempfile

from unittest import TestCase

from gdbloader.monitor import FileMonitor, Monitor


class TestMonitor(TestCase):

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_default_file(self):
        default = Monitor._default_file  # pylint: disable=protected-access
        self.assertEqual(os.path.dirname(default), tempfile.gettempdir())
        self.assertEqual(os.path.basename(default), 'gdbloader-monitor.txt')

    def test_create(self):
        self.assertIs(type(Monitor.create(None)), Monitor)
        self.assertIs(type(Monitor.create('')), Monitor)

        with self.assertRaises(ValueError):
            Monitor.create('serial:/dev/ttyUSB0')

    def test_file_transcript(self):
        path = os.path.join(self._tmpdir.name, 'console.txt')

        monitor = Monitor.create('file:' + path)
        self.assertIsInstance(monitor, FileMonitor)

        monitor.write('print boot_count\n')
        monitor.read('stdout', '$1 = 8228421')
        monitor.read('stderr', 'Resetting target')
        monitor.close()

        # No effect once closed
        monitor.read('stdout', 'ignored')
        monitor.close()

        with open(path, 'r') as infile:
            self.assertEqual(infile.read().splitlines(), [
                'stdin< print boot_count',
                'stdout> $1 = 8228421',
                'stderr> Resetting target',
            ])
