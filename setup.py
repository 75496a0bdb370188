from glob import glob
from setuptools import Command
from setuptools import find_packages
from setuptools import setup

import os
import re
import subprocess

INSTALL_REQUIRES = ['pyyaml', 'sortedcontainers', 'termcolor']
DEVELOP_REQUIRES = ['autopep8', 'isort', 'mypy', 'pylint']
TESTS_REQUIRE = ['pytest', 'pytest-cov', 'testfixtures']


def readme():
    sphinx = re.compile(':py:[a-z]+:(`[^`]+`)')
    with open('README.rst') as readme_file:
        return sphinx.sub('`\\1`', readme_file.read())


def version():
    with open('stepmake/version.py') as version_file:
        return re.search("version = '([^']+)'", version_file.read()).group(1)


class SimpleCommand(Command):
    user_options = []

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        subprocess.check_call(self.command)


class MypyCommand(SimpleCommand):
    description = 'run MyPy on all Python source files'
    command = ['mypy',
               '--warn-redundant-casts',
               '--disallow-untyped-defs',
               '--warn-unused-ignores',
               *glob('stepmake/**/*.py', recursive=True),
               *glob('tests/**/*.py', recursive=True)]


class PyTestCommand(SimpleCommand):
    description = 'run pytest and generate coverage reports'
    command = ['pytest',
               '--cov=stepmake',
               '--cov-report=html',
               '--cov-report=term',
               '--no-cov-on-fail']

    def run(self):
        if os.path.exists('.coverage'):
            os.remove('.coverage')
        super().run()


class PylintCommand(SimpleCommand):
    description = 'run Pylint on all Python source files'
    command = [
        'pylint',
        '--init-import=yes',
        '--ignore-imports=yes',
        '--disable=' + ','.join([
            'fixme',
            'no-member',
            'too-few-public-methods',
            'ungrouped-imports',
            'wrong-import-order',
        ])
    ] + glob('stepmake/**/*.py', recursive=True) + glob('tests/**/*.py', recursive=True)


setup(name='stepmake',
      version=version(),
      description='Incremental C build steps in Python',
      long_description=readme(),
      long_description_content_type='text/x-rst',
      classifiers=[
          'Development Status :: 3 - Alpha',
          'License :: OSI Approved :: MIT License',
          'Programming Language :: Python :: 3',
          'Topic :: Software Development :: Build Tools',
          'Intended Audience :: Developers',
      ],
      keywords='make build compile',
      license='MIT',
      python_requires='>=3.8',
      packages=find_packages(exclude=['tests']),
      entry_points={'console_scripts': [
          'stepmake=stepmake.make:main',
      ]},
      install_requires=INSTALL_REQUIRES,
      extras_require={
          'test': TESTS_REQUIRE,
          'develop': INSTALL_REQUIRES + TESTS_REQUIRE + DEVELOP_REQUIRES
      },
      cmdclass={
          'mypy': MypyCommand,
          'pytest': PyTestCommand,
          'pylint': PylintCommand,
      })
