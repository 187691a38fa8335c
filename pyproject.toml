[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gamebase"
version = "0.1.0"
description = "Scene hierarchies, chunked binary files, PNG/WAV loading and a software audio mixer for small games"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "pillow",
]
keywords = ["game", "scene graph", "audio mixer", "png", "wav", "chunk", "orbit camera"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gamebase"]

[tool.pytest.ini_options]
addopts = "-ra"
