#!/usr/bin/env python3
"""
limitd-shard Setup Script
=========================
Allows installation of the limitd-shard package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # With test dependencies
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="limitd-shard",
    version="1.0.0",
    packages=find_packages(include=["limitd_shard", "limitd_shard.*"]),
    python_requires=">=3.10",
    install_requires=[
        "aiodns>=3.0,<4.0",
        "mmh3>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "limitd-shard=limitd_shard.cli:main",
        ],
    },
)
