#!/usr/bin/env python
"""Setup script for riboqc. Command-line scripts are detected from the
modules in `riboqc/bin`, each of which defines a `main()` function.
"""
__author__ = "riboqc developers"

import os
from setuptools import setup, find_packages

riboqc_version = "0.1.0"


#===============================================================================
# Package metadata
#===============================================================================

with open("README.rst") as f:
    long_description = f.read()

install_requires = [
    "numpy>=1.17",
    "scipy>=1.3",
    "pandas>=1.0",
    "matplotlib>=3.5",
    "pysam>=0.15",
    "termcolor",
]

tests_require = [
    "pytest>=6.0",
]


def get_scripts():
    """Detect command-line scripts automatically

    Returns
    -------
    list
        list of strings describing command-line scripts
    """
    binscripts = [
        X.replace(".py", "") for X in filter(
            lambda x: x.endswith(".py") and  "__init__" not in x,
            os.listdir(os.path.join("riboqc",  "bin")),
        )
    ]
    return ["%s = riboqc.bin.%s:main" % (X, X) for X in sorted(binscripts)]



#===============================================================================
# Program body
#===============================================================================

setup(

    name             = "riboqc",
    version          = riboqc_version,
    long_description =  long_description,
    long_description_content_type = "text/x-rst",

    description      = "Quality control for ribosome profiling experiments",
    license          = "BSD 3-Clause",
    keywords         = "ribosome profiling riboseq quality control p-site periodicity",
    platforms        = "OS Independent",

    classifiers      = [
         'Development Status :: 3 - Alpha',
         'Programming Language :: Python :: 3',

         'Topic :: Scientific/Engineering :: Bio-Informatics',

         'Intended Audience :: Science/Research',

         'License :: OSI Approved :: BSD License',
         'Operating System :: POSIX',
         'Natural Language :: English',
    ],

    zip_safe = False,
    packages = find_packages(),

    package_dir = {
        "riboqc"  : "riboqc",
    },

    entry_points = {
        "console_scripts" : get_scripts()
    },

    install_requires = install_requires,
    extras_require   = { "test" : tests_require },

) # yapf: disable
