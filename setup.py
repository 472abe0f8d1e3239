#!/usr/bin/env python3
"""
gdbloader installation script
"""

import os
import re

from os.path import dirname, join, realpath
from setuptools import setup, find_packages

THIS_DIR = realpath(dirname(__file__))

# This is technically more permissive than what is dictated by PEP440,
# which requires a dot for suffixes, rather than a dash. (Plus signs
# are used for local versions.)
#
# See https://www.python.org/dev/peps/pep-0440/#public-version-identifiers
#
VERSION_REGEX = re.compile(
    r"__version__\s*=\s*'(?P<version>[0-9]+\.[0-9]+\.[0-9]+((\.|-|\+)[a-zA-Z0-9]+)*)'"
)


def get_version() -> str:
    version_file = join(THIS_DIR, 'gdbloader', 'version.py')
    with open(version_file, 'r') as infile:
        version_info = infile.read()
        match = VERSION_REGEX.search(version_info)
        if match:
            return match.group('version')

    raise ValueError('Failed to find version info')


def get_scripts() -> list:
    ret = []
    for root, _, files in os.walk(join(THIS_DIR, 'scripts')):
        for filename in files:
            if filename.startswith('.') or filename.endswith('.swp'):
                continue

            ret.append(os.path.relpath(join(root, filename), THIS_DIR))

    if not ret:
        raise FileNotFoundError('gdbloader scripts not found')

    return ret


def get_description() -> str:
    with open(join(THIS_DIR, 'Gdbloader.md'), 'r') as infile:
        return infile.read()


setup(
    name='gdbloader',
    version=get_version(),
    description='Flash firmware to embedded targets through a GDB remote debugging session',

    long_description=get_description(),
    long_description_content_type='text/markdown',

    license='BSD 3-Clause License',

    packages=find_packages(include=['gdbloader', 'gdbloader.*']),
    scripts=get_scripts(),

    install_requires=['tqdm >= 4.30.0'],

    python_requires='>=3.6, <4',

    extras_require={
        'tests': ['pytest >= 6.0']
    },

    zip_safe=False,

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Software Development :: Embedded Systems',
        'Topic :: System :: Hardware',
    ],
)
