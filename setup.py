# -*- coding: utf-8 -*-
"""
LDProc
======

LDProc_ is a Python JSON-LD_ processor.

.. _LDProc: http://github.com/ldproc/ldproc
.. _JSON-LD: http://json-ld.org/
"""

from setuptools import setup
import os

# get meta data
about = {}
with open(os.path.join(
        os.path.dirname(__file__), 'lib', 'ldproc', '__about__.py')) as fp:
    exec(fp.read(), about)

with open(os.path.join(os.path.dirname(__file__), 'README.rst')) as fp:
    long_description = fp.read()

setup(
    name='LDProc',
    version=about['__version__'],
    description='Python implementation of the JSON-LD processing algorithms',
    long_description=long_description,
    long_description_content_type='text/x-rst',
    author='LDProc contributors',
    url='http://github.com/ldproc/ldproc',
    packages=['ldproc', 'ldproc.documentloader'],
    package_dir={'': 'lib'},
    license='BSD 3-Clause license',
    python_requires='>=3.8',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Environment :: Web Environment',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Internet',
        'Topic :: Software Development :: Libraries',
    ],
    install_requires=['requests'],
    extras_require={
        'aiohttp': ['aiohttp'],
        'test': ['pytest', 'aiohttp'],
    },
    entry_points={
        'console_scripts': ['ldproc=ldproc.cli:main'],
    },
)
