"""Check NFS servers with ONC RPC null calls and report their latency."""

__version__ = "0.1.0"