"""
Outbound API Clients

External service adapters used by the routers.
"""

from .affinity import AffinityClient, WriteResult, get_affinity_client

__all__ = ["AffinityClient", "WriteResult", "get_affinity_client"]
