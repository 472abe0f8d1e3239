# SPDX-License-Identifier: BSD-3-Clause
#
# Relax style and documentation requirements for unit tests.
# pylint: disable=missing-function-docstring,missing-class-docstring,too-few-public-methods
#

"""
Unit tests for gdbloader.cmdline
"""

import contextlib
import io
import sys

from unittest import TestCase

from gdbloader import SessionState
from gdbloader.cmdline import ArgumentParser, create_session

from .test_utils import fake_gdb_kwargs


def _flash_parser():
    parser = ArgumentParser(prog='test')
    parser.add_file_argument(required=True, help='Firmware image')
    parser.add_address_argument()
    parser.add_chunk_size_argument()
    parser.add_buffer_argument()
    parser.add_copy_fn_argument()
    parser.add_checksum_var_argument()
    parser.add_break_argument()
    parser.add_workspace_argument()
    parser.add_no_progress_argument()
    return parser


class TestArgumentParser(TestCase):

    def _parse_error(self, parser, argv):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                parser.parse_args(argv)
        self.assertEqual(ctx.exception.code, 2)

    def test_defaults(self):
        args = _flash_parser().parse_args([
            '-e', 'app.elf', '-f', 'app.bin', '--buffer', 'ram_buffer',
            '--copy-fn', 'copy_chunk', '-b', 'main'
        ])

        self.assertEqual(args.gdb, 'arm-none-eabi-gdb')
        self.assertEqual(args.server, 'localhost:3333')
        self.assertEqual(args.elf, 'app.elf')
        self.assertEqual(args.file, 'app.bin')
        self.assertEqual(args.address, 0)
        self.assertEqual(args.chunk_size, 64 * 1024)
        self.assertEqual(args.buffer, 'ram_buffer')
        self.assertEqual(args.copy_fn, 'copy_chunk')
        self.assertEqual(args.break_symbol, 'main')
        self.assertIsNone(args.checksum_var)
        self.assertIsNone(args.workspace)
        self.assertIsNone(args.monitor)
        self.assertIsNone(args.log_level)
        self.assertFalse(args.no_progress)

    def test_values(self):
        args = _flash_parser().parse_args([
            '-g', 'gdb-multiarch', '-s', '192.168.0.10:2331', '-e', 'app.elf',
            '-f', 'app.bin', '-a', '0x8000', '--chunk-size', '4K',
            '--buffer', 'ram_buffer', '--copy-fn', 'copy_void', '--checksum-var', 'checksum',
            '--break', 'MX_ThreadX_Init', '-w', '/tmp/ws', '-m', 'file:/tmp/mon.txt',
            '-L', 'debug', '--no-progress'
        ])

        self.assertEqual(args.gdb, 'gdb-multiarch')
        self.assertEqual(args.server, '192.168.0.10:2331')
        self.assertEqual(args.address, 0x8000)
        self.assertEqual(args.chunk_size, 4096)
        self.assertEqual(args.checksum_var, 'checksum')
        self.assertEqual(args.break_symbol, 'MX_ThreadX_Init')
        self.assertEqual(args.workspace, '/tmp/ws')
        self.assertEqual(args.monitor, 'file:/tmp/mon.txt')
        self.assertEqual(args.log_level, 'debug')
        self.assertTrue(args.no_progress)

    def test_missing_required(self):
        self._parse_error(_flash_parser(), ['-f', 'app.bin'])

    def test_invalid_lengths(self):
        base = ['-e', 'app.elf', '-f', 'app.bin', '--buffer', 'b', '--copy-fn', 'c', '-b', 'm']

        self._parse_error(_flash_parser(), base + ['--chunk-size', '0'])
        self._parse_error(_flash_parser(), base + ['--chunk-size', 'lots'])
        self._parse_error(_flash_parser(), base + ['-a', '-16'])

    def test_file_help_required(self):
        parser = ArgumentParser(init_args=None)
        with self.assertRaises(ValueError):
            parser.add_file_argument()

    def test_init_args(self):
        parser = ArgumentParser(init_args=['elf', 'buffer'], buffer_required=False, prog='test')
        args = parser.parse_args(['-e', 'app.elf'])

        self.assertEqual(args.elf, 'app.elf')
        self.assertIsNone(args.buffer)
        self.assertFalse(hasattr(args, 'gdb'))

        with self.assertRaises(TypeError):
            ArgumentParser(init_args=42)

        with self.assertRaises(AttributeError):
            ArgumentParser(init_args=['bogus'])


class TestCreateSession(TestCase):

    def test_create_session(self):
        parser = ArgumentParser(prog='test')
        args = parser.parse_args(['-g', sys.executable, '-e', 'firmware.elf'])

        session = create_session(args, **fake_gdb_kwargs())
        try:
            self.assertEqual(session.state, SessionState.READY)
        finally:
            session.close()
