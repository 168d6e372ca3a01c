[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fairtopk"
version = "0.1.0"
description = "Fair top-k ranking tools: dataset loading, fairness quality measures, BSP-tree search and concurrent container building blocks"
requires-python = ">=3.10"
keywords = ["fairness", "top-k", "ranking", "bsp-tree", "linear-programming", "bounded-queue"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Information Analysis",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["fairtopk"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
