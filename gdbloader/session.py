# SPDX-License-Identifier: BSD-3-Clause
"""
Functionality for driving an interactive GDB session attached to a remote target.

GDB's console provides no message framing, no terminators and no structured
acknowledgements. Output for a single command may arrive on either standard
output or standard error, and the number of lines emitted depends on the
command (and sometimes on target state). The :py:class:`Session` class turns
this into a strict request/response protocol:

* Both output streams are merged into one ordered line source
  (:py:class:`StreamMux`), so callers never need to know which stream a
  particular acknowledgement is routed to.

* Each named operation collects its response according to a fixed
  :py:class:`Policy` and timeout, taken from a table of
  :py:class:`CommandTiming` entries (:py:data:`DEFAULT_TIMINGS`). The
  values in this table were tuned against observed debugger behavior.
  They may be overridden per-session with a *timings* keyword argument, or
  scaled using the ``GDBLOADER_TIMEOUT_SCALE`` environment variable.

A typical session is used as follows:

.. code:: python

    from gdbloader import Session

    with Session('arm-none-eabi-gdb', 'firmware.elf', 'localhost:3333') as gdb:
        gdb.reset()
        gdb.set_breakpoint('main')
        gdb.resume()
        gdb.halt()
        value = gdb.read_variable('boot_count')
"""

import enum
import os
import queue
import subprocess
import threading
import time

from collections import namedtuple

from . import parser
from .errors import (HandshakeTimeout, MalformedResponse, PipeIOFailure,
                     ProcessExitedUnexpectedly, SpawnFailure)
from .log import GdbLoaderLog
from .monitor import Monitor


class Policy:
    """
    A collection policy, governing how many response lines a command waits for.

    * ``Policy.exactly(n)`` - Collect *n* lines, returning as soon as they arrive.
    * ``Policy.NONE`` - No output is expected. Nothing is read.
    * ``Policy.UNBOUNDED`` - Collect lines until the timeout elapses.

    In all cases, collection also stops if a debugger output stream closes.
    """

    def __init__(self, count=None):
        self.count = count

    @classmethod
    def exactly(cls, count: int):
        """
        Return a policy that collects exactly *count* lines.
        """
        if count <= 0:
            raise ValueError('Line count must be positive. Got: {:d}'.format(count))
        return cls(count)

    def __eq__(self, other):
        return isinstance(other, Policy) and self.count == other.count

    def __hash__(self):
        return hash(self.count)

    def __repr__(self):
        if self.count is None:
            return 'Policy.UNBOUNDED'
        if self.count == 0:
            return 'Policy.NONE'
        return 'Policy.exactly({:d})'.format(self.count)


Policy.NONE = Policy(0)
Policy.UNBOUNDED = Policy(None)


CommandTiming = namedtuple('CommandTiming', 'policy timeout')
CommandTiming.__doc__ = """
Response collection policy and timeout (in seconds) for one kind of command.
"""

#: Per-command collection policies and timeouts, by command kind.
DEFAULT_TIMINGS = {
    # Startup text (e.g. "Reading symbols from...") is discarded
    'banner':    CommandTiming(Policy.UNBOUNDED,    1.0),
    'confirm':   CommandTiming(Policy.NONE,         0.0),

    # Establishing the remote link is comparatively slow
    'attach':    CommandTiming(Policy.UNBOUNDED,    2.0),

    # Reset acknowledgement is a single line, observed on stderr
    'reset':     CommandTiming(Policy.exactly(1),   0.25),
    'break':     CommandTiming(Policy.exactly(1),   0.25),

    # Reports a breakpoint hit only if one is reached
    'continue':  CommandTiming(Policy.UNBOUNDED,    0.5),
    'halt':      CommandTiming(Policy.NONE,         0.0),

    # The requested sleep duration is added to this timeout
    'sleep':     CommandTiming(Policy.UNBOUNDED,    0.25),

    # Target-side routines may program flash before returning
    'call':      CommandTiming(Policy.exactly(1),   5.0),
    # Any result a function prints is read and discarded
    'call_void': CommandTiming(Policy.UNBOUNDED,    0.25),

    'print':     CommandTiming(Policy.exactly(1),   0.25),
    'restore':   CommandTiming(Policy.exactly(1),   1.0),
    'help':      CommandTiming(Policy.UNBOUNDED,    0.25),
    'quit':      CommandTiming(Policy.UNBOUNDED,    0.5),
}

# Substrings of a "target remote" response denoting that no link was established
_ATTACH_FAILURE_STRINGS = (
    'Connection timed out',
    'Connection refused',
    'Remote communication error',
    'Remote connection closed',
    'could not connect',
)

_PROMPT = '(gdb)'

_U32_MAX = 0xffff_ffff


class SessionState(enum.Enum):
    """
    Lifecycle state of a :py:class:`Session`.
    """
    CREATED = 'created'
    READY   = 'ready'
    FAILED  = 'failed'
    CLOSED  = 'closed'


class ResponseFrame(list):
    """
    The ordered lines collected in response to a single request.

    The *eof* attribute is ``True`` if collection stopped because a debugger
    output stream closed.
    """

    def __init__(self, *args):
        super().__init__(*args)
        self.eof = False


class StreamMux:
    """
    Merges several binary output streams into one line source.

    A reader thread per stream places each line it reads on a shared queue,
    such that :py:meth:`readline()` returns lines in order of arrival,
    regardless of the stream they arrived on. Lines are decoded, stripped of
    surrounding whitespace and any leading GDB prompts. Empty lines are dropped.

    The *streams* argument is a dictionary mapping a stream name
    (e.g. ``'stdout'``) to a file object opened in binary mode.
    """

    _EOF = object()

    def __init__(self, streams: dict, encoding='utf-8'):
        self._encoding = encoding
        self._queue = queue.Queue()
        self._eof = None
        self._streams = streams
        self._threads = []

        for name, stream in streams.items():
            thread = threading.Thread(target=self._reader, args=(name, stream),
                                      name='gdbloader ' + name + ' reader', daemon=True)
            self._threads.append(thread)
            thread.start()

    def _reader(self, name: str, stream):
        try:
            for raw in iter(stream.readline, b''):
                line = raw.decode(self._encoding, errors='replace').strip()
                while line.startswith(_PROMPT):
                    line = line[len(_PROMPT):].lstrip()

                if line:
                    self._queue.put((name, line))

        except (OSError, ValueError):
            # Stream closed from our side during close(); same as end of stream
            pass

        finally:
            self._queue.put((name, self._EOF))

    @property
    def eof(self) -> bool:
        """
        ``True`` once any of the streams has reported end-of-stream.
        """
        return self._eof is not None

    def readline(self, timeout: float):
        """
        Return the next available ``(stream_name, line)`` tuple, waiting up to
        *timeout* seconds. ``None`` is returned if no line arrived in time.

        A :py:exc:`~gdbloader.errors.ProcessExitedUnexpectedly` exception is raised
        once a stream has closed and all lines received before that have been consumed.
        """
        if self._eof is not None:
            raise ProcessExitedUnexpectedly('Debugger {:s} stream closed'.format(self._eof))

        try:
            name, line = self._queue.get(timeout=max(timeout, 0))
        except queue.Empty:
            return None

        if line is self._EOF:
            self._eof = name
            raise ProcessExitedUnexpectedly('Debugger {:s} stream closed'.format(name))

        return (name, line)

    def close(self, timeout=1.0):
        """
        Wait up to *timeout* seconds (per stream) for reader threads to finish,
        and close the underlying streams.
        """
        for thread in self._threads:
            thread.join(timeout)

        for stream in self._streams.values():
            stream.close()


class Session:
    """
    This class owns a GDB subprocess and exposes a request/response protocol
    atop its console, along with a small set of named target-control operations.

    The *executable* is the debugger program to run (e.g. ``arm-none-eabi-gdb``).
    It is started with the *image* (the target's ELF binary) as its argument, and is
    then attached to the remote debug server at *server* (e.g. ``localhost:3333``).
    A :py:exc:`~gdbloader.errors.SpawnFailure` is raised if the process cannot be
    started, and a :py:exc:`~gdbloader.errors.HandshakeTimeout` is raised if the
    attach does not succeed.

    The following keyword arguments are supported:

    * *gdb_args* - Arguments placed before *image*. Default: ``('-q',)``
    * *timings* - Dictionary of :py:class:`CommandTiming` entries overriding
      those in :py:data:`DEFAULT_TIMINGS`.
    * *timeout_scale* - Multiplier applied to all timeouts. The
      ``GDBLOADER_TIMEOUT_SCALE`` environment variable takes precedence.
    * *exit_timeout* - Seconds to wait for the debugger to exit when closing. Default: 5.0
    * *monitor* - A :py:class:`~gdbloader.monitor.Monitor` to record console traffic.
    * *log* - A :py:class:`~gdbloader.log.GdbLoaderLog` handle.

    Only one request may be outstanding at a time. A Session is not thread-safe;
    it is intended to be used by a single caller.
    """

    def __init__(self, executable: str, image: str, server: str, **kwargs):
        self.log = kwargs.get('log') or GdbLoaderLog('(session)')
        self.monitor = kwargs.get('monitor') or Monitor()

        self._timings = dict(DEFAULT_TIMINGS)
        self._timings.update(kwargs.get('timings') or {})

        self._timeout_scale = float(kwargs.get('timeout_scale', 1.0))
        scale_env = os.getenv('GDBLOADER_TIMEOUT_SCALE')
        if scale_env is not None:
            self._timeout_scale = float(scale_env)

        if self._timeout_scale <= 0:
            raise ValueError('Timeout scale must be positive. Got: {}'.format(self._timeout_scale))

        self._exit_timeout = float(kwargs.get('exit_timeout', 5.0))
        self._encoding = 'utf-8'
        self._closing = False
        self._state = SessionState.CREATED

        args = [executable] + list(kwargs.get('gdb_args', ('-q',))) + [image]
        self.log.note('Starting debugger: ' + ' '.join(args))

        try:
            self._proc = subprocess.Popen(args,
                                          stdin=subprocess.PIPE,
                                          stdout=subprocess.PIPE,
                                          stderr=subprocess.PIPE)
        except OSError as e:
            raise SpawnFailure('Failed to start {:s}: {:s}'.format(executable, str(e))) from e

        self._mux = StreamMux({'stdout': self._proc.stdout, 'stderr': self._proc.stderr},
                              encoding=self._encoding)

        try:
            self._handshake(server)
        except Exception:
            self._state = SessionState.FAILED
            self._proc.kill()
            self._reap()
            raise

        self._state = SessionState.READY

    @classmethod
    def open(cls, executable: str, image: str, server: str, **kwargs):
        """
        Spawn a debugger and attach it to *server*. Equivalent to invoking the constructor.
        """
        return cls(executable, image, server, **kwargs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _handshake(self, server: str):
        self._command('confirm', 'set confirm off')

        timing = self._timings['banner']
        banner = self.await_response(timing.policy, timing.timeout * self._timeout_scale)
        if banner.eof:
            raise ProcessExitedUnexpectedly('Debugger exited during startup: {}'.format(banner))

        self.log.note('Attaching to ' + server)
        resp = self._command('attach', 'target remote ' + server)

        if resp.eof:
            raise ProcessExitedUnexpectedly('Debugger exited while attaching: {}'.format(resp))

        if len(resp) == 0:
            raise HandshakeTimeout('No response while attaching to ' + server)

        for line in resp:
            for failure in _ATTACH_FAILURE_STRINGS:
                if failure in line:
                    raise HandshakeTimeout('Failed to attach to {:s}: {:s}'.format(server, line))

        self.log.note('Attached to ' + server)

    @property
    def state(self) -> SessionState:
        """
        Current :py:class:`SessionState`.
        """
        return self._state

    @property
    def timings(self) -> dict:
        """
        The effective command timing table in use by this session.
        """
        return dict(self._timings)

    def send(self, command: str):
        """
        Write *command* to the debugger as a single line.

        A :py:exc:`~gdbloader.errors.PipeIOFailure` is raised if the input pipe is
        closed or broken. If a previous request observed the debugger's output
        closing, :py:exc:`~gdbloader.errors.ProcessExitedUnexpectedly` is raised instead.
        """
        if self._state == SessionState.CLOSED:
            raise PipeIOFailure('Cannot send "{:s}" on a closed session'.format(command))

        if self._state == SessionState.FAILED:
            raise ProcessExitedUnexpectedly('Cannot send "{:s}"; debugger is no longer running'.format(command))

        self.log.debug('Requesting: ' + command)
        data = command + '\n'

        try:
            self._proc.stdin.write(data.encode(self._encoding))
            self._proc.stdin.flush()
        except (OSError, ValueError) as e:
            self._state = SessionState.FAILED
            raise PipeIOFailure('Failed to send "{:s}": {:s}'.format(command, str(e))) from e

        self.monitor.write(data)

    def await_response(self, policy: Policy, timeout: float) -> ResponseFrame:
        """
        Collect response lines from both of the debugger's output streams,
        in order of arrival, according to the collection *policy*.

        Collection ends once the policy is satisfied, *timeout* seconds have
        elapsed, or an output stream closes. Whatever was collected up to that
        point is returned. A closed stream moves the session into the
        :py:attr:`SessionState.FAILED` state, causing the next request to fail.

        A :py:exc:`~gdbloader.errors.PipeIOFailure` is raised if the session is closed.
        """
        if self._state == SessionState.CLOSED:
            raise PipeIOFailure('Cannot read responses from a closed session')

        frame = ResponseFrame()
        if policy.count == 0:
            return frame

        deadline = time.monotonic() + timeout

        while policy.count is None or len(frame) < policy.count:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break

            try:
                entry = self._mux.readline(remaining)
            except ProcessExitedUnexpectedly as e:
                if self._closing:
                    self.log.debug(str(e))
                else:
                    self.log.warning(str(e) + '. The process might have exited unexpectedly.')

                frame.eof = True
                self._state = SessionState.FAILED
                break

            if entry is None:
                break

            stream, line = entry
            self.log.debug('  {:s}: {:s}'.format(stream, line))
            self.monitor.read(stream, line)
            frame.append(line)

        if policy.count is not None and len(frame) < policy.count and not frame.eof:
            msg = 'Timed out after {:.3f} s with {:d}/{:d} response lines'
            self.log.debug(msg.format(timeout, len(frame), policy.count))

        return frame

    def request(self, command: str, policy: Policy, timeout: float) -> ResponseFrame:
        """
        Send *command* and collect its response according to *policy* and *timeout*.
        No attempt is made to read a response when *policy* is ``Policy.NONE``.
        """
        self.send(command)
        return self.await_response(policy, timeout)

    def _command(self, kind: str, command: str, extra_timeout=0.0) -> ResponseFrame:
        timing = self._timings[kind]
        timeout = timing.timeout * self._timeout_scale + extra_timeout
        return self.request(command, timing.policy, timeout)

    def reset(self) -> ResponseFrame:
        """
        Reset the target via ``monitor reset``.
        """
        return self._command('reset', 'monitor reset')

    def set_breakpoint(self, symbol: str) -> ResponseFrame:
        """
        Set a breakpoint at *symbol*.
        """
        return self._command('break', 'break ' + symbol)

    def resume(self) -> ResponseFrame:
        """
        Resume target execution. The response includes a breakpoint
        hit report, if one occurred within the command's timeout.
        """
        return self._command('continue', 'continue')

    def halt(self) -> ResponseFrame:
        """
        Halt the target via ``monitor halt``. No response is awaited.
        """
        return self._command('halt', 'monitor halt')

    def sleep(self, millis: int) -> ResponseFrame:
        """
        Have the debug server sleep for *millis* milliseconds.
        This call blocks for at least that duration.
        """
        if millis < 0:
            raise ValueError('Sleep duration cannot be negative. Got: {:d}'.format(millis))

        return self._command('sleep', 'monitor sleep {:d}'.format(millis),
                             extra_timeout=millis / 1000.0)

    def call(self, function: str, *args, returns=False) -> str:
        """
        Invoke *function* on the target with up to two unsigned 32-bit integer
        arguments.

        If *returns* is ``True``, the function's result line (e.g. ``$3 = 1234``)
        is returned verbatim, and a :py:exc:`~gdbloader.errors.NoReturnValue`
        exception is raised if none was received. Otherwise, any output is
        collected for the ``call_void`` timeout and discarded, and an empty
        string is returned.
        """
        if len(args) > 2:
            raise ValueError('At most 2 arguments are supported. Got {:d}'.format(len(args)))

        for arg in args:
            if isinstance(arg, bool) or not isinstance(arg, int) or not 0 <= arg <= _U32_MAX:
                raise ValueError('Arguments must be unsigned 32-bit integers. Got: {!r}'.format(arg))

        command = 'call {:s}({:s})'.format(function, ', '.join(str(arg) for arg in args))

        if returns:
            resp = self._command('call', command)
        else:
            resp = self._command('call_void', command)

        return parser.extract_call_result(resp, returns)

    def call_u32(self, function: str, *args) -> int:
        """
        Invoke *function* on the target (see :py:meth:`call()`) and return its
        result as an unsigned 32-bit integer.
        """
        result = self.call(function, *args, returns=True)
        value = parser.extract_trailing_integer(result)
        if value is None:
            raise MalformedResponse('call ' + function, [result])
        return value

    def read_variable(self, name: str) -> int:
        """
        Read the value of integer variable *name* from the target.
        """
        command = 'print ' + name
        resp = self._command('print', command)

        value = None
        if len(resp) > 0:
            value = parser.extract_trailing_integer(resp[0])

        if value is None:
            raise MalformedResponse(command, resp)

        return value

    def restore(self, buffer: str, filename: str) -> int:
        """
        Write the contents of the local file *filename* to target memory at *buffer*,
        which may be any expression GDB can resolve to an address (e.g. the name of
        a RAM buffer).

        Returns the number of bytes written, as reported by the debugger.
        """
        command = 'restore {:s} binary {:s}'.format(filename, buffer)
        resp = self._command('restore', command)

        addr_range = parser.find_address_range(resp)
        if addr_range is None:
            raise MalformedResponse(command, resp)

        start, end = addr_range
        return end - start

    def help(self) -> ResponseFrame:
        """
        Request GDB's top-level help text.
        """
        return self._command('help', 'help')

    def quit(self) -> ResponseFrame:
        """
        Request that the debugger exit. Most callers should use :py:meth:`close()`.
        """
        self._closing = True
        return self._command('quit', 'quit')

    def _reap(self) -> int:
        try:
            self._proc.stdin.close()
        except OSError:
            # Buffered input can no longer be delivered to an exited process
            pass

        try:
            status = self._proc.wait(timeout=self._exit_timeout)
        except subprocess.TimeoutExpired:
            self.log.warning('Debugger did not exit after {:.1f} s. Killing it.'.format(self._exit_timeout))
            self._proc.kill()
            status = self._proc.wait()

        self._mux.close()
        return status

    def close(self, close_monitor=True):
        """
        Ask the debugger to quit and wait for it to exit.

        A nonzero exit status is logged, but is not considered a failure.
        If the session has already failed, the process is only reaped.
        Closing an already closed session has no effect.

        If *close_monitor* is ``True``, the attached monitor is closed as well.
        """
        if self._state == SessionState.CLOSED:
            return

        try:
            if self._state != SessionState.FAILED:
                self.quit()
        finally:
            status = self._reap()
            self._state = SessionState.CLOSED

            if close_monitor:
                self.monitor.close()

        if status != 0:
            self.log.warning('Debugger exited with status {:d}'.format(status))
        else:
            self.log.debug('Debugger exited')
