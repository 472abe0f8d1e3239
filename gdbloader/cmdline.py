# SPDX-License-Identifier: BSD-3-Clause
"""
The *gdbloader.cmdline* module provides functionality to help create consistent
command line interfaces atop of the gdbloader API. This includes a set of
common argument flags and handlers.

This module includes gdbloader's own :py:class:`ArgumentParser` class that wraps the standard
Python :py:class:`argparse.ArgumentParser` as well as custom :py:class:`argparse.Action` classes.
"""

import argparse

from gdbloader.monitor import Monitor
from gdbloader.session import Session
from gdbloader.string  import length_to_int

_DEFAULT_GDB = 'arm-none-eabi-gdb'
_DEFAULT_SERVER = 'localhost:3333'
_DEFAULT_CHUNK_SIZE = 64 * 1024


def create_session(args, **kwargs) -> Session:
    """
    Create and return a :py:class:`~gdbloader.session.Session` based upon
    command-line arguments.

    The *args* parameter should contain the results of :py:class:`ArgumentParser.parse_args()`.

    The following must be included in the **args** Namespace, even if set to their
    unspecified (e.g. default, ``None``) values.

    * *gdb* - From :py:meth:`ArgumentParser.add_gdb_argument()`
    * *elf* - From :py:meth:`ArgumentParser.add_elf_argument()`
    * *server* - From :py:meth:`ArgumentParser.add_server_argument()`

    The *monitor* item, from :py:meth:`ArgumentParser.add_monitor_argument()`, is optional.

    Any *kwargs* are passed to the :py:class:`~gdbloader.session.Session` constructor.
    """
    if getattr(args, 'monitor', None):
        kwargs['monitor'] = Monitor.create(args.monitor)

    return Session(args.gdb, args.elf, args.server, **kwargs)


class AddressAction(argparse.Action):
    """
    ArgumentParser Action for validating flash offsets and addresses.

    The following suffixes are supported:

        * kB = 1000
        * K or kiB = 1024
        * MB = 1000 * 1000
        * M or MiB = 1024 * 1024
        * GB = 1000 * 1000 * 1000
        * G or GiB = 1024 * 1024 * 1024

    """
    def __call__(self, parser, namespace, address, option_string=None):
        try:
            value = length_to_int(address, desc='address')
        except ValueError as e:
            parser.error(str(e))
        setattr(namespace, self.dest, value)


class LengthAction(argparse.Action):
    """
    ArgumentParser action for parsing positive length values with support for the
    same suffixes supported by :py:class:`AddressAction`.
    """
    def __call__(self, parser, namespace, length, option_string=None):
        try:
            value = length_to_int(length)
        except ValueError as e:
            parser.error(str(e))

        if value == 0:
            parser.error('Length must be greater than zero: ' + length)

        setattr(namespace, self.dest, value)


class ArgumentParser(argparse.ArgumentParser):
    """
    This class is an extension of Python's own :py:class:`argparse.ArgumentParser`
    that adds gdbloader-specific argument handler initializations.

    The *init_args* parameter provides a simple way to configure the parser
    in situations where ``add_<x>_argument()`` methods would only be called
    with their default arguments. Instead, *init_args* can be provided as a list
    of strings, with each string corresponding to the ``<x>`` in ``add_<x>_argument``.

    When using this *init_args* approach, keyword arguments prefixed
    with ``<x>_`` will be passed to the corresponding ``add_<x>_argument``, sans prefix.
    """
    # Supress this for consistency with the ArgumentParser keyword names:
    #  pylint: disable=redefined-builtin

    #: :obj:`list` :
    #: Default list used by :py:meth:`ArgumentParser.__init__()` unless
    #: otherwise overridden with a caller-provided list.
    DEFAULT_ARGS = [
        'gdb',
        'elf',
        'server',
        'monitor',
        'log_level',
    ]

    def _perform_arg_handler_init(self, init_args: list, kwargs_dict: dict):
        """
        Helper for __init__() to aggregate the requested add_<x>_argument()
        operations, as indicated by `init_args`.

        Keyword arguments are handled as a dict so that items can be pop()'d
        before we allow them to be expanded and passed to the "real"
        ArgumentParser.
        """
        init_operations = []
        for name in init_args:
            to_pop = []
            fn_kwargs = {}
            for key in kwargs_dict:
                if key.startswith(name + '_'):
                    to_pop.append(key)
                    fn_kwargs[key[len(name) + 1:]] = kwargs_dict[key]

            # Remove items from kwargs so that the super class doesn't raise
            # a TypeError over unexpected keyword arguments
            for key in to_pop:
                kwargs_dict.pop(key)

            init_fn = getattr(self, 'add_' + name + '_argument')
            init_operations.append((init_fn, fn_kwargs))

        return init_operations

    def __init__(self, init_args='default', **kwargs):
        """
        Construct a ArgumentParser and initialize gdbloader-specific
        argument handlers according to the contents of the `init_args` keyword.

        The special string `'default'` may be passed instead of a customized
        list in order to use all of the items in the `DEFAULT_ARGS` list.
        Either `None` or an empty list may be passed if you do not wish to
        include any of the gdbloader-specific command-line arguments.

        :Raises: :py:class:`AttributeError` if a name in `init_args` is invalid.
        """
        if init_args == 'default':
            init_args = self.DEFAULT_ARGS
        elif init_args in self.DEFAULT_ARGS:
            init_args = [init_args]
        elif init_args is None:
            init_args = []
        elif not isinstance(init_args, list):
            raise TypeError('init_args expected to be a string or list')

        init_operations = self._perform_arg_handler_init(init_args, kwargs)

        super().__init__(**kwargs)
        for op_fn, op_kwargs in init_operations:
            op_fn(**op_kwargs)

        # Required values are still given as option flags, so that
        # argument order never matters.
        try:
            self._optionals.title = 'options'
        except AttributeError:
            pass

    def add_gdb_argument(self, **kwargs):
        """
        Add the debugger executable argument to the ArgumentParser.
        """
        default_value = kwargs.pop('default', _DEFAULT_GDB)
        help_text = 'Debugger executable. Default: ' + default_value
        self.add_argument('-g', '--gdb',
                          metavar=kwargs.pop('metavar', '<path>'),
                          default=default_value,
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_elf_argument(self, **kwargs):
        """
        Add the target binary (loaded into the debugger) argument to the ArgumentParser.
        """
        help_text = 'ELF binary of the program running on the target.'
        self.add_argument('-e', '--elf',
                          metavar=kwargs.pop('metavar', '<path>'),
                          required=kwargs.pop('required', True),
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_server_argument(self, **kwargs):
        """
        Add the remote debug server address argument to the ArgumentParser.
        """
        default_value = kwargs.pop('default', _DEFAULT_SERVER)
        help_text = 'Remote GDB server address. Default: ' + default_value
        self.add_argument('-s', '--server',
                          metavar=kwargs.pop('metavar', '<host:port>'),
                          default=default_value,
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_file_argument(self, **kwargs):
        """
        Add a file argument to the ArgumentParser.

        The caller **must** provide the help text in order to specify the
        purpose of this file.
        """
        if 'help' not in kwargs:
            raise ValueError('Help text must be provided for -f,--file')

        self.add_argument('-f', '--file',
                          metavar=kwargs.pop('metavar', '<path>'),
                          **kwargs)

    def add_address_argument(self, **kwargs):
        """
        Add a flash offset argument to the ArgumentParser.
        """
        default_value = kwargs.pop('default', 0)
        help_text = 'Flash offset at which the image is written. Default: 0x{:08x}'
        self.add_argument('-a', '--address',
                          metavar=kwargs.pop('metavar', '<value>'),
                          default=default_value,
                          action=AddressAction,
                          help=kwargs.pop('help', help_text.format(default_value)),
                          **kwargs)

    def add_chunk_size_argument(self, **kwargs):
        """
        Add an upload chunk size argument to the ArgumentParser.
        """
        default_value = kwargs.pop('default', _DEFAULT_CHUNK_SIZE)
        help_text = ('Bytes transferred per chunk. Must not exceed the size '
                     'of the target RAM buffer. Default: {:d}')

        self.add_argument('--chunk-size',
                          metavar=kwargs.pop('metavar', '<n>'),
                          default=default_value,
                          action=LengthAction,
                          help=kwargs.pop('help', help_text.format(default_value)),
                          **kwargs)

    def add_buffer_argument(self, **kwargs):
        """
        Add a target RAM buffer argument to the ArgumentParser.
        """
        help_text = 'Name of the target RAM buffer chunks are written to.'
        self.add_argument('--buffer',
                          metavar=kwargs.pop('metavar', '<symbol>'),
                          required=kwargs.pop('required', True),
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_copy_fn_argument(self, **kwargs):
        """
        Add an argument naming the target routine that copies a chunk to flash.
        """
        help_text = ('Target function invoked as fn(flash_offset, length) to copy '
                     'a chunk from the RAM buffer to flash. It must return the '
                     "chunk's 32-bit additive checksum.")

        self.add_argument('--copy-fn',
                          metavar=kwargs.pop('metavar', '<symbol>'),
                          required=kwargs.pop('required', True),
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_checksum_var_argument(self, **kwargs):
        """
        Add an argument naming a target variable that holds the chunk checksum.
        """
        help_text = ("Read each chunk's checksum from this target variable "
                     'instead of using the copy function\'s return value.')

        self.add_argument('--checksum-var',
                          metavar=kwargs.pop('metavar', '<symbol>'),
                          default=kwargs.pop('default', None),
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_break_argument(self, **kwargs):
        """
        Add an argument naming the symbol at which the target is stopped prior to uploading.
        """
        help_text = 'Run the target until this symbol is reached, then upload.'
        self.add_argument('-b', '--break',
                          dest='break_symbol',
                          metavar=kwargs.pop('metavar', '<symbol>'),
                          required=kwargs.pop('required', True),
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_workspace_argument(self, **kwargs):
        """
        Add an argument specifying the directory in which chunks are staged.
        """
        help_text = ('Scratch directory used to stage chunks. '
                     'It is erased and recreated for each upload.')

        self.add_argument('-w', '--workspace',
                          metavar=kwargs.pop('metavar', '<dir>'),
                          default=kwargs.pop('default', None),
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_monitor_argument(self, **kwargs):
        """
        Add a console monitor argument to the ArgumentParser.
        """
        help_text = 'Record debugger console traffic. Valid types: file'
        self.add_argument('-m', '--monitor',
                          metavar='<type>[:options,...]',
                          default=kwargs.pop('default', None),
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_log_level_argument(self, **kwargs):
        """
        Add a log level argument to the ArgumentParser.
        """
        help_text = ('Log verbosity: debug, note, info, warning, error, silent. '
                     'Default: $GDBLOADER_LOG_LEVEL, or note.')

        self.add_argument('-L', '--log-level',
                          metavar='<level>',
                          default=kwargs.pop('default', None),
                          help=kwargs.pop('help', help_text),
                          **kwargs)

    def add_no_progress_argument(self, **kwargs):
        """
        Add an argument to disable progress bars.
        """
        self.add_argument('--no-progress',
                          action='store_true',
                          default=kwargs.pop('default', False),
                          help=kwargs.pop('help', 'Do not display a progress bar.'),
                          **kwargs)
