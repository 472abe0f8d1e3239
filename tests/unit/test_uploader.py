# SPDX-License-Identifier: BSD-3-Clause
#
# Relax style and documentation requirements for unit tests.
# pylint: disable=missing-function-docstring,missing-class-docstring,too-few-public-methods
#

"""
Unit tests for gdbloader.uploader, using an in-process stand-in for a Session.
"""

import os
import tempfile

from unittest import TestCase

from gdbloader import (ChecksumMismatch, ChunkUploader, FilesystemError,
                       MalformedResponse, NoReturnValue, Workspace, upload)
from gdbloader.uploader import checksum

from .test_utils import random_data


class _DummySession:
    """
    Mimics the Session operations used by ChunkUploader against a simulated
    target with a RAM buffer and flash.
    """

    def __init__(self, corrupt=None, short_write=None, call_result=None):
        self.corrupt = corrupt
        self.short_write = short_write
        self.call_result = call_result

        self.ram = b''
        self.flash = bytearray()
        self.restored = []
        self.calls = []
        self.variables = {}

    def restore(self, buffer, filename):
        with open(filename, 'rb') as infile:
            self.ram = infile.read()

        self.restored.append((buffer, os.path.basename(filename), len(self.ram)))

        if self.short_write is not None and len(self.restored) - 1 == self.short_write:
            return len(self.ram) - 1

        return len(self.ram)

    def call(self, function, *args, returns=False):
        self.calls.append((function,) + args)
        index = len(self.calls) - 1

        offset, length = args
        data = self.ram[:length]

        end = offset + length
        if len(self.flash) < end:
            self.flash.extend(b'\xff' * (end - len(self.flash)))
        self.flash[offset:end] = data

        value = checksum(data)
        if index == self.corrupt:
            value = (value + 0x10) & 0xffff_ffff

        if self.call_result is not None:
            result = self.call_result
        else:
            result = '${:d} = {:d}'.format(index + 1, value)

        if returns:
            if not result:
                raise NoReturnValue('No return value')
            return result

        self.variables['checksum'] = value
        return ''

    def read_variable(self, name):
        return self.variables[name]


class TestChunkUploader(TestCase):

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.workspace = Workspace(os.path.join(self._tmpdir.name, 'ws'))

    def tearDown(self):
        self._tmpdir.cleanup()

    def _staged(self):
        return sorted(os.listdir(self.workspace.path))

    def test_end_to_end(self):
        data = random_data(150000, seed=4, ret_bytes=True)
        session = _DummySession()

        uploader = ChunkUploader(session, self.workspace)
        state = uploader.upload(data, 'ram_buffer', 65536, 0, 'copy_chunk', show_progress=False)

        self.assertEqual([r[2] for r in session.restored], [65536, 65536, 18928])
        self.assertEqual([r[0] for r in session.restored], ['ram_buffer'] * 3)
        self.assertEqual(session.calls, [
            ('copy_chunk', 0, 65536),
            ('copy_chunk', 65536, 65536),
            ('copy_chunk', 131072, 18928),
        ])

        self.assertEqual(bytes(session.flash), data)
        self.assertEqual(self._staged(), ['chunk_0.bin', 'chunk_1.bin', 'chunk_2.bin'])

        self.assertEqual(state.chunk_count, 3)
        self.assertEqual(state.bytes_transferred, 150000)
        self.assertEqual(state.total_bytes, 150000)
        self.assertEqual(state.flash_offset, 150000)

    def test_flash_offset(self):
        data = random_data(1000, seed=5, ret_bytes=True)
        session = _DummySession()

        uploader = ChunkUploader(session, self.workspace)
        state = uploader.upload(data, 'buf', 256, 0x1000, 'copy', show_progress=False)

        offsets = [c[1] for c in session.calls]
        self.assertEqual(offsets, [0x1000, 0x1100, 0x1200, 0x1300])
        self.assertEqual(state.flash_offset, 0x1000 + 1000)
        self.assertEqual(bytes(session.flash[0x1000:]), data)

    def test_checksum_mismatch(self):
        data = random_data(150000, seed=6, ret_bytes=True)

        for k in range(0, 3):
            with self.subTest(chunk_index=k):
                session = _DummySession(corrupt=k)
                uploader = ChunkUploader(session, self.workspace)

                with self.assertRaises(ChecksumMismatch) as ctx:
                    uploader.upload(data, 'buf', 65536, 0, 'copy', show_progress=False)

                host = checksum(data[k * 65536:(k + 1) * 65536])
                self.assertEqual(ctx.exception.chunk_index, k)
                self.assertEqual(ctx.exception.host, host)
                self.assertEqual(ctx.exception.target, (host + 0x10) & 0xffff_ffff)

                # Nothing after chunk k was staged, written or copied
                expected = ['chunk_{:d}.bin'.format(i) for i in range(0, k + 1)]
                self.assertEqual(self._staged(), expected)
                self.assertEqual(len(session.restored), k + 1)
                self.assertEqual(len(session.calls), k + 1)

    def test_progress_callback(self):
        data = random_data(300, seed=7, ret_bytes=True)
        reports = []

        def on_progress(index, count, transferred, total, elapsed):
            self.assertGreaterEqual(elapsed, 0)
            reports.append((index, count, transferred, total))

        uploader = ChunkUploader(_DummySession(), self.workspace)
        uploader.upload(data, 'buf', 128, 0, 'copy', on_progress, show_progress=False)

        self.assertEqual(reports, [
            (0, 3, 128, 300),
            (1, 3, 256, 300),
            (2, 3, 300, 300),
        ])

    def test_reported_count_is_authoritative(self):
        data = random_data(300, seed=8)

        # Checksums of the reported 99 bytes and full 100 bytes agree
        data[99] = 0
        session = _DummySession(short_write=0)

        uploader = ChunkUploader(session, self.workspace)
        state = uploader.upload(data, 'buf', 100, 0, 'copy', show_progress=False)

        self.assertEqual(session.calls[0], ('copy', 0, 99))
        self.assertEqual(session.calls[1], ('copy', 99, 100))
        self.assertEqual(state.bytes_transferred, 299)

    def test_checksum_variable(self):
        data = random_data(1000, seed=9, ret_bytes=True)
        session = _DummySession()

        uploader = ChunkUploader(session, self.workspace)
        state = uploader.upload(data, 'buf', 512, 0, 'copy', checksum_variable='checksum',
                                show_progress=False)

        self.assertEqual(state.bytes_transferred, 1000)
        self.assertEqual(bytes(session.flash), data)

    def test_checksum_variable_mismatch(self):
        data = random_data(1000, seed=9, ret_bytes=True)
        session = _DummySession(corrupt=1)

        uploader = ChunkUploader(session, self.workspace)
        with self.assertRaises(ChecksumMismatch) as ctx:
            uploader.upload(data, 'buf', 512, 0, 'copy', checksum_variable='checksum',
                            show_progress=False)

        self.assertEqual(ctx.exception.chunk_index, 1)

    def test_malformed_call_result(self):
        session = _DummySession(call_result='No symbol "copy" in current context.')
        uploader = ChunkUploader(session, self.workspace)

        with self.assertRaises(MalformedResponse):
            uploader.upload(b'1234', 'buf', 2, 0, 'copy', show_progress=False)

        self.assertEqual(len(session.restored), 1)

    def test_empty_data(self):
        session = _DummySession()
        uploader = ChunkUploader(session, self.workspace)
        state = uploader.upload(b'', 'buf', 64, 0, 'copy', show_progress=False)

        self.assertEqual(state.chunk_count, 0)
        self.assertEqual(state.bytes_transferred, 0)
        self.assertEqual(session.restored, [])
        self.assertEqual(self._staged(), [])

    def test_invalid_chunk_size(self):
        uploader = ChunkUploader(_DummySession(), self.workspace)
        with self.assertRaises(ValueError):
            uploader.upload(b'1234', 'buf', 0, 0, 'copy', show_progress=False)

    def test_stale_workspace_removed(self):
        self.workspace.reset()
        self.workspace.stage(5, b'stale')

        uploader = ChunkUploader(_DummySession(), self.workspace)
        uploader.upload(b'abcd', 'buf', 4, 0, 'copy', show_progress=False)

        self.assertEqual(self._staged(), ['chunk_0.bin'])

    def test_upload_from_file(self):
        data = random_data(5000, seed=10, ret_bytes=True)
        filename = os.path.join(self._tmpdir.name, 'image.bin')
        with open(filename, 'wb') as outfile:
            outfile.write(data)

        session = _DummySession()
        state = upload(session, filename, 'buf', 2048, 0, 'copy',
                       workspace=self.workspace, show_progress=False)

        self.assertEqual(state.chunk_count, 3)
        self.assertEqual(bytes(session.flash), data)

    def test_upload_missing_file(self):
        filename = os.path.join(self._tmpdir.name, 'missing.bin')
        uploader = ChunkUploader(_DummySession(), self.workspace)

        with self.assertRaises(FilesystemError):
            uploader.upload_from_file(filename, 'buf', 64, 0, 'copy', show_progress=False)
