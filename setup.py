#!/usr/bin/env python
# -*- coding: utf8 -*-
# vim: ts=4 sw=4 et ai:

import pathlib
from setuptools import setup, find_packages

base = pathlib.Path(__file__).parent

README = (base / 'README.md').read_text()

setup(
      name='tftpfetch',
      version='0.1.0',
      description='Minimal TFTP download client',
      long_description=README,
      long_description_content_type='text/markdown',
      packages=find_packages(include=['tftpfetch', 'tftpfetch.*']),
      python_requires='>=3.7',
      classifiers=[
        'Programming Language :: Python :: 3',
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: POSIX',
        'Topic :: Internet',
        'Topic :: System :: Networking',
        ]
      )
