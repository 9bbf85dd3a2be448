"""
crudsmith - CRUD resource generator for FastAPI + SQLAlchemy projects
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="crudsmith",
    version="0.1.0",
    author="crudsmith contributors",
    author_email="",
    description="Generate complete CRUD resources for FastAPI + SQLAlchemy projects",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "SQLAlchemy>=2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "crudsmith=crudsmith.cli:cli_main",
        ],
    },
    keywords="fastapi, sqlalchemy, alembic, generator, code-generator, crud, scaffolding",
)
