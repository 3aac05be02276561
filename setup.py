"""Setup configuration for Room Sync."""

from setuptools import setup, find_packages

setup(
    name="room-sync",
    version="0.1.0",
    description="Ephemeral co-located collaboration rooms with snapshot replication",
    author="Room Sync Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "websockets>=14.0",
        "textual>=0.47.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "room-relay=room.main:main",
            "room-client=client.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
