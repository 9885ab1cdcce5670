"""
Setup script for assessment-toolkit.

The assessment toolkit is the tool and session coordination engine behind
an assessment player. It serves three roles:

1. Tool Registry - Which tools are visible where, and with what config
2. Attempt Sessions - Deterministic identity and canonical session records
3. Section Services - Renderable content and session event merging

The 'toolkit' command is a developer CLI for inspecting all three.
"""

from setuptools import find_namespace_packages, setup

setup(
    name="assessment-toolkit",
    version="1.0.0",
    description="Tool and session coordination engine for assessment delivery",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["src", "src.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.12.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "toolkit=src.cli.toolkit_cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Testing",
    ],
    keywords="assessment accessibility tools qti session",
)
