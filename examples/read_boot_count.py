#!/usr/bin/env python3
"""
Run the target until it reaches a breakpoint, read a counter maintained by the
firmware, and toggle an LED by calling one of its functions.

Usage: read_boot_count.py -e <elf> -b <symbol> [-L debug]
"""

import sys

from gdbloader import log as gdbloader_log
from gdbloader.cmdline import ArgumentParser, create_session

parser = ArgumentParser()
parser.add_break_argument()
parser.add_argument('--variable', default='boot_count', help='Integer variable to read')
parser.add_argument('--led-fn', default='green_togl', help='Void function to invoke')
args = parser.parse_args()

log = gdbloader_log.configure(args.log_level)

with create_session(args) as gdb:
    gdb.reset()
    gdb.set_breakpoint(args.break_symbol)

    resp = gdb.resume()
    if not any(line.startswith('Breakpoint') for line in resp):
        log.error('Target did not stop at ' + args.break_symbol)
        sys.exit(1)

    gdb.halt()

    value = gdb.read_variable(args.variable)
    log.info('{:s} = {:d} (0x{:08x})'.format(args.variable, value, value))

    gdb.call(args.led_fn)
    gdb.sleep(500)
    gdb.call(args.led_fn)
