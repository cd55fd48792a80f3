"""
RPC - transport and envelope layer.

Builds JSON-RPC 1.0 requests, posts them with HTTP basic auth over httpx,
checks status and correlation id, and coerces results into records or
scalars.
"""
