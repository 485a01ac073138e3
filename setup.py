"""
Setup script for kinderquiz-engine.

kinderquiz-engine is the adaptive learning session engine behind a
child-facing quiz app. It serves three roles:

1. Question supply - generated question sets with a deterministic offline fallback
2. Progress tracking - points, streaks, module mastery, achievements and unlocks
3. Session flow - the quiz state machine and end-of-quiz learning analytics

The 'kinderquiz' command is a small terminal driver over the engine.
"""

from setuptools import find_packages, setup

setup(
    name="kinderquiz-engine",
    version="1.0.0",
    description="Adaptive learning session engine for a child-facing quiz app",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Generation
        "google-generativeai>=0.5.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
        "postgres": [
            "psycopg2-binary>=2.9.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "kinderquiz=src.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="learning quiz children education adaptive",
)
