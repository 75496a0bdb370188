"""
Common utilities for tests.
"""

from stepmake.stat import Stat
from textwrap import dedent
from typing import List
from unittest import TestCase

import logging
import os
import shutil
import stat
import sys
import tempfile

# pylint: disable=missing-docstring

#: A fake compiler which records its invocation and creates its ``-o`` output.
FAKE_CC = """
    #!/bin/sh
    echo "cc $*" >> calls.log
    out=
    while [ $# -gt 0 ]; do
        if [ "$1" = "-o" ]; then
            shift
            out="$1"
        fi
        shift
    done
    touch "$out"
"""

#: A fake compiler which records when it starts and ends creating its ``-o`` output.
SLOW_CC = """
    #!/bin/sh
    out=
    while [ $# -gt 0 ]; do
        if [ "$1" = "-o" ]; then
            shift
            out="$1"
        fi
        shift
    done
    echo "start $out" >> calls.log
    sleep 0.5
    echo "end $out" >> calls.log
    touch "$out"
"""

#: A fake archiver which records its invocation and creates its output.
FAKE_AR = """
    #!/bin/sh
    echo "ar $*" >> calls.log
    touch "$2"
"""

#: A tool which records its invocation and fails.
FAILING_TOOL = """
    #!/bin/sh
    echo "fail $*" >> calls.log
    exit 2
"""


def undent(content: str) -> str:
    content = dedent(content)
    if content and content[0] == '\n':
        content = content[1:]
    return content


def write_file(path: str, content: str = '') -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w') as file:
        file.write(undent(content))


def set_mtime(path: str, seconds: float) -> None:
    os.utime(path, (seconds, seconds))
    Stat.forget(path)


class TestWithReset(TestCase):

    def setUp(self) -> None:
        Stat.reset()
        logging.getLogger('stepmake').setLevel('DEBUG')
        logging.getLogger('asyncio').setLevel('WARN')


class TestWithFiles(TestWithReset):

    def setUp(self) -> None:
        super().setUp()
        self.maxDiff = None  # pylint: disable=invalid-name
        self.previous_argv = sys.argv
        sys.argv = ['stepmake']
        self.previous_directory = os.getcwd()
        self.temporary_directory = tempfile.mkdtemp()
        os.chdir(os.path.expanduser(self.temporary_directory))

    def tearDown(self) -> None:
        sys.argv = self.previous_argv
        os.chdir(self.previous_directory)
        shutil.rmtree(self.temporary_directory)

    def write_tool(self, name: str, script: str) -> str:
        path = os.path.abspath(name)
        write_file(path, script)
        os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    def write_source(self, path: str, seconds: float = 1_000_000) -> None:
        write_file(path, path + '\n')
        set_mtime(path, seconds)

    def calls(self) -> List[str]:
        if not os.path.exists('calls.log'):
            return []
        with open('calls.log') as file:
            return file.read().splitlines()

    def expect_file(self, path: str, expected: str) -> None:
        with open(path, 'r') as file:
            actual = file.read()
            self.assertEqual(actual, undent(expected))
