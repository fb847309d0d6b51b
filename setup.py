#!/usr/bin/env python

import re
from pathlib import Path

from setuptools import setup


with (Path(__file__).parent / "aiodockerapi" / "__init__.py").open() as fp:
    try:
        version = re.findall(r'^__version__ = "([^"]+)"\r?$', fp.read(), re.M)[0]
    except IndexError:
        raise RuntimeError("Unable to determine version.")


long_description = open("README.rst").read() + open("CHANGES.rst").read()


requirements = [
    "aiohttp>=3.9",
    "attrs>=22.2",
    "multidict>=6.0",
    "python-dateutil>=2.8",
    "yarl>=1.9",
]

test_requirements = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]


setup(
    name="aiodockerapi",
    version=version,
    long_description=long_description,
    long_description_content_type="text/x-rst",
    description="Typed Docker Engine API client for asyncio",
    license="Apache 2",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: Apache Software License",
        "Intended Audience :: Developers",
        "Framework :: AsyncIO",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development",
    ],
    platforms=["any"],
    packages=["aiodockerapi"],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={"test": test_requirements},
)
