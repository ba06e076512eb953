[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "domecore"
version = "0.1.0"
description = "Engine building blocks: streaming JSON, tar archives, RGBA bitmaps and an audio channel mixer"
requires-python = ">=3.10"
keywords = ["json", "tar", "audio", "mixer", "bitmap", "game-engine"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: System :: Archiving",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["domecore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
