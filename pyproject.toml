[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smimetrics"
version = "0.6.1"
description = "Parse accelerator, CPU, memory and storage metrics from exporter text and aggregate them into cluster-wide statistics, trends and health checks."
requires-python = ">=3.10"
dependencies = []
keywords = ["gpu", "npu", "monitoring", "metrics", "prometheus", "cluster"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["smimetrics"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
