"""This module implements the context for state handling during downloads,
the main interface to which being the Context base class.

Each context object represents a single download and holds the state object
for the current stage of that transfer, the socket, the output file and the
negotiated parameters. Nothing is shared between contexts."""

from .client import Download
