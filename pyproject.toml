[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "procman"
version = "0.1.0"
description = "Build Alpine-based root filesystem images and prepare process contexts from them"
requires-python = ">=3.10"
keywords = ["containers", "images", "rootfs", "alpine", "chroot", "process"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
procman = "procman.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["procman"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
