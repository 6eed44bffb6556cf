"""Setlist Planner - Arrange catalog songs into ordered performance sets."""

from importlib.metadata import version

__version__ = version("setlist-planner")

# Reserved token prefixes shared by the resolver and the editor UI
CATALOG_TOKEN_PREFIX = "playbook-"
SET_CONTAINER_PREFIX = "set-container-"
