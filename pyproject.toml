[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "daprctl"
version = "0.1.0"
description = "Library for inspecting a Dapr control plane on Kubernetes, building its Helm values and talking to Dapr sidecars."
requires-python = ">=3.10"
keywords = ["dapr", "kubernetes", "helm", "sidecar", "mtls", "microservices"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml>=6.0",
    "filelock>=3.12",
    "packaging>=23.0",
    "cryptography>=41.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[tool.hatch.build.targets.wheel]
packages = ["daprctl"]

[tool.hatch.build.targets.sdist]
include = ["daprctl", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP", "SIM"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
check_untyped_defs = true
