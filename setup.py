"""Setup file for backward compatibility with older pip versions."""

from setuptools import setup, find_packages

setup(
    name="aztui",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"aztui.tui": ["styles.tcss"]},
    install_requires=[
        "click>=8.1.0",
        "pydantic>=2.0.0",
        "rich>=13.0.0",
        "textual>=0.61.0",
        "httpx>=0.25.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "aztui=aztui.cli:cli",
        ],
    },
    python_requires=">=3.10",
)
