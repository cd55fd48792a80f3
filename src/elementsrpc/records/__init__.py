"""
Records - typed shapes of the daemon's JSON results.

Frozen pydantic models with no behaviour. They are decode targets for
``RpcResponse.unmarshal_result``.
"""
