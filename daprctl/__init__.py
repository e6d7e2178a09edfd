"""Inspect a Dapr control plane, build its Helm values and talk to Dapr sidecars."""

__version__ = "0.1.0"