"""Setup configuration for the Auditcord Discord bot."""

from setuptools import setup, find_packages

setup(
    name="auditcord",
    version="0.1.0",
    description="A Discord bot that mirrors guild changes into a log channel",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "py-cord>=2.6",
        "aiosqlite>=0.20",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "auditcord=auditcord.main:main",
        ],
    },
)
