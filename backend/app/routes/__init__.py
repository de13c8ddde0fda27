"""Unversioned infrastructure routes. Application endpoints live under v1/."""

from . import prometheus as prometheus
