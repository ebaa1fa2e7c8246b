[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flatctl"
version = "0.1.0"
description = "Multirotor position and attitude controllers based on differential flatness"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "multirotor",
    "quadrotor",
    "control",
    "geometric control",
    "differential flatness",
    "quaternion",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["flatctl"]

[tool.pytest.ini_options]
addopts = "-ra"
