#!/usr/bin/env python3
"""
Setup script for rsaplan - static Routing and Spectrum Assignment planning.

This package plans elastic optical networks in batch: it generates candidate
paths, builds a mixed-integer RSA model, solves it through an external
solver and independently validates the resulting assignment.
"""

from setuptools import setup, find_packages
import os

# Read the README file for long description
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "rsaplan - static Routing and Spectrum Assignment planner"

setup(
    name="rsaplan",
    version="0.1.0",
    author="rsaplan Development Team",
    description="Static Routing and Spectrum Assignment planner for elastic optical networks",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=['tests*', '*.tests', '*.tests.*', 'docs*']),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Topic :: System :: Networking",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    install_requires=[
        # Core dependencies that are always needed
        "networkx>=3.2.1",
        "numpy>=1.26.3",
        "pandas>=2.2.0",
        "PyYAML>=6.0.1",
        "PuLP>=2.8.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.4",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "rsa-plan=rsaplan.cli.run_plan:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords="optical networks, routing and spectrum assignment, integer programming, planning",
)
