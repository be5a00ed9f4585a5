[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kubevm"
version = "0.1.0"
description = "Building blocks for running a single-node Kubernetes cluster in a local virtual machine"
requires-python = ">=3.10"
keywords = [
    "kubernetes",
    "virtual-machine",
    "localkube",
    "docker",
    "ssh",
    "scp",
    "kubeconfig",
]
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
    "Topic :: System :: Systems Administration",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "paramiko",
    "pyyaml",
    "requests",
    "semver",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["kubevm"]

[tool.hatch.build.targets.sdist]
include = ["kubevm", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
