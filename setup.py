"""Setup script for opencode-agents."""
from setuptools import setup, find_packages

dependencies = [
    "requests",
    "rich>=13.0.0",
    "python-dotenv",
    "PyYAML>=6.0",
]

setup(
    name="opencode-agents",
    version="1.0.0",
    description="OpenCode Agents - installer, validators, and session log tools",
    license="MIT",
    python_requires=">=3.11,<4.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=dependencies,
    extras_require={
        "test": ["pytest>=8.0"],
    },
    entry_points={
        "console_scripts": [
            "opencode-agents=opencode_agents:cli_main",
        ],
    },
)
