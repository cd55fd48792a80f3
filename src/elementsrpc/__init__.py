from loguru import logger

__all__ = [
    # Client
    "RpcClient",
    "TraceEvent",
    "RpcSettings",
    # Envelopes
    "RpcRequest",
    "RpcResponse",
    "RpcFault",
    # Errors
    "RpcClientError",
    "TransportFault",
    "NoResultPresent",
    "NoFaultPresent",
    "MalformedFault",
    "UnsupportedResultShape",
    "ResultTypeMismatch",
    # Records
    "Balance",
    "Record",
    "RECORDS",
    "RawTransaction",
    "ScriptPubKey",
    "ScriptSig",
    "SignedTransaction",
    "Unspent",
    "UnspentList",
    "ValidatedAddress",
    "Vin",
    "Vout",
    "Wallet",
    "decode_record",
    "dump_record",
    # Correlation ids
    "clock_id",
    "random_id",
]

from .rpc.client import RpcClient, TraceEvent
from .rpc.envelope import RpcFault, RpcRequest, RpcResponse
from .rpc.errors import (
    MalformedFault,
    NoFaultPresent,
    NoResultPresent,
    ResultTypeMismatch,
    RpcClientError,
    TransportFault,
    UnsupportedResultShape,
)
from .records.models import (
    RECORDS,
    Balance,
    RawTransaction,
    Record,
    ScriptPubKey,
    ScriptSig,
    SignedTransaction,
    Unspent,
    UnspentList,
    ValidatedAddress,
    Vin,
    Vout,
    Wallet,
    decode_record,
    dump_record,
)
from .config import RpcSettings
from .utils import clock_id, random_id

logger.disable("elementsrpc")
