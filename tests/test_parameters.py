"""
Test the configurable parameters.
"""

from argparse import ArgumentParser
from argparse import ArgumentTypeError
from stepmake.parameters import Parameter
from stepmake.parameters import Parameters
from stepmake.parameters import build_parameters
from stepmake.parameters import compute_jobs
from stepmake.parameters import str2bool
from stepmake.parameters import str2choice
from stepmake.parameters import str2int
from tests import TestWithFiles
from tests import TestWithReset
from tests import write_file
from unittest.mock import patch

# pylint: disable=missing-docstring


class TestParsers(TestWithReset):

    def test_str2bool(self) -> None:
        self.assertTrue(str2bool('Yes'))
        self.assertFalse(str2bool('0'))
        self.assertRaises(ArgumentTypeError, str2bool, 'maybe')

    def test_str2int(self) -> None:
        self.assertEqual(str2int()('-3'), -3)
        self.assertEqual(str2int(min=1, max=4)('4'), 4)
        self.assertRaisesRegex(ArgumentTypeError, 'Expected int value$', str2int(), 'x')
        self.assertRaisesRegex(ArgumentTypeError, '1 <= value <= 4', str2int(min=1, max=4), '5')

    def test_str2choice(self) -> None:
        self.assertEqual(str2choice(['a', 'b'])('b'), 'b')
        self.assertRaisesRegex(ArgumentTypeError, 'one of: a b', str2choice(['a', 'b']), 'c')

    def test_compute_jobs(self) -> None:
        self.assertEqual(compute_jobs(3), 3)
        self.assertGreater(compute_jobs(0), 1000)
        with patch('os.cpu_count', return_value=8):
            self.assertEqual(compute_jobs(-1), 8)
            self.assertEqual(compute_jobs(-3), 2)
            self.assertEqual(compute_jobs(-16), 1)


class TestParameters(TestWithFiles):

    def test_duplicate(self) -> None:
        parameters = build_parameters()
        self.assertRaisesRegex(RuntimeError, 'Multiple definitions for the parameter: cc',
                               parameters.add,
                               Parameter(name='cc', default='', parser=str, description='cc'))

    def test_command_line(self) -> None:
        parameters = build_parameters()
        parser = ArgumentParser()
        parameters.add_to_parser(parser)
        parameters.parse_args(parser.parse_args(['-j', '3', '--cc', 'clang', '-ll', 'DEBUG']))
        self.assertEqual(parameters['jobs'], 3)
        self.assertEqual(parameters['cc'], 'clang')
        self.assertEqual(parameters['ar'], 'ar')
        self.assertEqual(parameters['log_level'], 'DEBUG')

    def test_invalid_command_line(self) -> None:
        parameters = build_parameters()
        parser = ArgumentParser()
        parameters.add_to_parser(parser)
        self.assertRaisesRegex(RuntimeError, 'Invalid value: many for the parameter: jobs',
                               parameters.parse_args, parser.parse_args(['--jobs', 'many']))

    def test_load_config(self) -> None:
        write_file('config.yaml', """
            jobs: '4'
            ar: llvm-ar
        """)
        parameters = build_parameters()
        parameters.load_config('config.yaml')
        self.assertEqual(parameters['jobs'], 4)
        self.assertEqual(parameters['ar'], 'llvm-ar')

    def test_empty_config(self) -> None:
        write_file('empty.yaml')
        parameters = build_parameters()
        parameters.load_config('empty.yaml')
        self.assertEqual(parameters['jobs'], -1)

    def test_non_mapping_config(self) -> None:
        write_file('list.yaml', '- 1\n')
        self.assertRaisesRegex(RuntimeError, 'file: list.yaml does not contain a top-level mapping',
                               build_parameters().load_config, 'list.yaml')

    def test_invalid_config_value(self) -> None:
        write_file('bad.yaml', 'jobs: many\n')
        self.assertRaisesRegex(RuntimeError,
                               'Invalid value: many for the parameter: jobs '
                               'specified in the configuration file: bad.yaml',
                               build_parameters().load_config, 'bad.yaml')

    def test_malformed_config(self) -> None:
        write_file('bad.yaml', 'jobs: [4\n')
        self.assertRaisesRegex(RuntimeError, 'Failed to parse the configuration file: bad.yaml',
                               build_parameters().load_config, 'bad.yaml')

    def test_missing_config(self) -> None:
        self.assertRaises(FileNotFoundError, Parameters().load_config, 'missing.yaml')
