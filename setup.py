#!/usr/bin/env python3
import setuptools

setuptools.setup(
    name="import-sorter",
    version="0.1.0",
    packages=["import_sorter"],
    python_requires=">=3.8",
    install_requires=[
        "click",
        "json5",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "import-sorter = import_sorter.cli:main",
        ],
    },
    author="",
    description="Command-line tool to sort and group JavaScript/TypeScript import statements",
    license="MIT",
)
