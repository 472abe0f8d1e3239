#!/usr/bin/env python3
"""
Attach to a target, print GDB's top-level help text, and exit.
"""
import traceback
from gdbloader import GdbLoaderError, Session, log as gdbloader_log

log = gdbloader_log.configure()

try:
    with Session('arm-none-eabi-gdb', 'build/firmware.elf', 'localhost:3333') as gdb:
        for line in gdb.help():
            print(line)

        # Perform other operations here via the gdb handle

except GdbLoaderError as error:
    log.error(str(error))

    # Shown if GDBLOADER_LOG_LEVEL=debug in environment
    log.debug(traceback.format_exc())
