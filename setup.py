#!/usr/bin/env python3
"""
seqcache Setup Script
=====================
Allows installation of the seqcache package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="seqcache",
    version="1.0.0",
    packages=find_packages(include=["seqcache", "seqcache.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "seqcache=seqcache.cli:main",
        ],
    },
)
