# pylint: disable=missing-docstring
version = '0.1.0'
