#!/usr/bin/env python3
"""Setup script for the standaardwerk listing parser."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="standaardwerk",
    version="1.0.0",
    author="Standaardwerk contributors",
    description="Parser for German/Dutch/English industrial step-program listings",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["standaardwerk", "standaardwerk.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Compilers",
        "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "standaardwerk=standaardwerk.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
