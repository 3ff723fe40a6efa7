[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sysmonkit"
version = "0.1.0"
description = "Data models and formatting for a system monitor: load graphs, open files, memory maps, file search"
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = ["system monitor", "load graph", "memory maps", "open files", "lsof", "psutil"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sysmonkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
