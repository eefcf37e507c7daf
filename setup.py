"""
Setup script for the kde panel.
This allows the panel to be installed using pip.
"""

from setuptools import setup, find_namespace_packages
import os

# Get the directory containing setup.py
setup_dir = os.path.dirname(os.path.abspath(__file__))

# Read README.md from the same directory as setup.py
with open(os.path.join(setup_dir, "README.md"), "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="kde-panel",
    version="0.1.0",
    description="Terminal panel for local Kubernetes development environments managed by the kde CLI",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["kde_panel", "kde_panel.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
    ],
    python_requires=">=3.9",
    install_requires=[
        "click>=8.0.0",
        "pyyaml>=5.1",
        "textual>=0.86.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "kde-panel=kde_panel.cli.cli:main",
        ],
    },
)
