"""
Taskdeck setup.py — Package configuration.
"""

from setuptools import find_packages, setup

setup(
    name="taskdeck",
    version="1.0.0",
    description="Taskdeck — task list view-model engine",
    packages=find_packages(include=["taskdeck", "taskdeck.*"]),
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
