#!/usr/bin/env python
from setuptools import setup, find_packages

setup(
    name="mixdrift",
    version="0.1.0",
    description="Gaussian mixture stream generators with Hellinger-controlled concept drift",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",

    # picks up mixdrift/ and its subpackages, but not tests, docs, etc.
    packages=find_packages(exclude=["tests*", "docs*", "notebooks*"]),

    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.22",
        "scipy>=1.8",
    ],
    extras_require={
        "dev": [
            "pytest",
            "black",
            "flake8",
        ],
    },

    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],

    include_package_data=False,
)
