"""Building blocks for running a single-node Kubernetes cluster in a local VM."""

__version__ = "0.1.0"