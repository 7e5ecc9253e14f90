[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tensorgraph"
version = "0.1.0"
description = "A small computation-graph engine with shape inference, graph optimisation, memory planning and CPU kernels"
requires-python = ">=3.10"
dependencies = []
keywords = ["tensor", "computation graph", "shape inference", "graph optimization", "memory allocator"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tensorgraph"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
