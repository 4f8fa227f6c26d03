# setup.py
from setuptools import setup, find_packages

setup(
    name="site_kb",
    version="0.1.0",
    description="Polite single-origin crawler that builds a JSON knowledge base for a chat assistant",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-kb=site_kb.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
