"""HostOps - capability registry, safe command runner and host diagnostics"""

__version__ = "0.3.0"
