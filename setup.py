"""
Setup script for resultset

Install:
    pip install -e .
    pip install -e ".[test]"       # with the test suite requirements
    pip install -e ".[postgres]"   # with the PostgreSQL adapter
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="resultset",
    version="0.1.0",
    author="resultset Contributors",
    description="Deferred, composable query specifications compiled to dialect-specific SQL",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["resultset", "resultset.*"]),
    python_requires=">=3.9",
    install_requires=[
        "sqlglot>=20.0.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "pyyaml>=6.0",
        "click>=8.0.0",
        "rich>=13.0.0",
        "duckdb>=0.9.0",
    ],
    extras_require={
        "postgres": ["psycopg2-binary>=2.9.0"],
        "test": ["pytest>=7.0.0", "markdown-it-py>=3.0.0"],
        "all": ["psycopg2-binary>=2.9.0", "pytest>=7.0.0", "markdown-it-py>=3.0.0"],
    },
    entry_points={
        "console_scripts": [
            "resultset=resultset.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
        "Topic :: Software Development :: Libraries",
    ],
    keywords="sql, query-builder, resultset, sqlglot, database",
)
