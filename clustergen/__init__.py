"""Cluster configuration generator for a multi-node broker deployment.

Maps a small set of topology parameters (total nodes, core nodes, load-balancing
strategy) onto per-node container definitions, an HAProxy configuration, a
Prometheus scrape configuration and a TLS certificate bundle that all agree on
the same node set.
"""

__version__ = "0.1.0"
