from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, Strict, TypeAdapter, model_validator

StrictStr = Annotated[str, Strict()]
StrictInt = Annotated[int, Strict()]
StrictFloat = Annotated[float, Strict()]
StrictBool = Annotated[bool, Strict()]

Balance = dict[str, StrictFloat]


class Record(BaseModel):
    """
    Base for daemon result shapes.

    Unknown keys are ignored and a JSON null keeps the field's default, the
    same way the daemon's own clients read these results.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class ValidatedAddress(Record):
    """Result of ``validateaddress``."""

    is_valid: StrictBool = Field(default=False, alias="isvalid")
    address: StrictStr = ""
    script_pub_key: StrictStr = Field(default="", alias="scriptPubKey")
    is_mine: StrictBool = Field(default=False, alias="ismine")
    is_watchonly: StrictBool = Field(default=False, alias="iswatchonly")
    is_script: StrictBool = Field(default=False, alias="isscript")
    pub_key: StrictStr = Field(default="", alias="pubkey")
    is_compressed: StrictBool = Field(default=False, alias="iscompressed")
    account: StrictStr = ""
    confidential_key: StrictStr = ""
    unconfidential: StrictStr = ""
    confidential: StrictStr = ""
    hd_key_path: StrictStr = Field(default="", alias="hdkeypath")
    hd_master_key_id: StrictStr = Field(default="", alias="hdmasterkeyid")


class Unspent(Record):
    """One entry of ``listunspent``."""

    txid: StrictStr = ""
    vout: StrictInt = 0
    address: StrictStr = ""
    account: StrictStr = ""
    script_pub_key: StrictStr = Field(default="", alias="scriptPubKey")
    amount: StrictFloat = 0.0
    asset: StrictStr = ""
    asset_commitment: StrictStr = Field(default="", alias="assetcommitment")
    confirmations: StrictInt = 0
    ser_value: StrictStr = Field(default="", alias="serValue")
    blinder: StrictStr = ""
    redeem_script: StrictStr = Field(default="", alias="redeemScript")
    spendable: StrictBool = False
    solvable: StrictBool = False


UnspentList = list[Unspent]


class Wallet(Record):
    """Result of ``getwalletinfo``. Balances are keyed by asset label."""

    wallet_version: StrictInt = Field(default=0, alias="walletversion")
    balance: Balance = Field(default_factory=dict)
    unconfirmed_balance: Balance = Field(default_factory=dict)
    immature_balance: Balance = Field(default_factory=dict)
    tx_count: StrictInt = Field(default=0, alias="txcount")
    keypool_oldest: StrictInt = Field(default=0, alias="keypoololdest")
    keypool_size: StrictInt = Field(default=0, alias="keypoolsize")
    unlocked_until: StrictInt = 0
    pay_tx_fee: StrictFloat = Field(default=0.0, alias="paytxfee")
    hd_master_key_id: StrictStr = Field(default="", alias="hdmasterkeyid")


class ScriptSig(Record):
    asm: StrictStr = ""
    hex: StrictStr = ""


class ScriptPubKey(Record):
    asm: StrictStr = ""
    hex: StrictStr = ""
    req_sigs: StrictInt = Field(default=0, alias="reqSigs")
    type: StrictStr = ""
    addresses: list[StrictStr] = Field(default_factory=list)


class Vin(Record):
    txid: StrictStr = ""
    vout: StrictInt = 0
    script_sig: ScriptSig = Field(default_factory=ScriptSig, alias="scriptSig")
    txinwitness: list[StrictStr] = Field(default_factory=list)
    sequence: StrictInt = 0


class Vout(Record):
    value: StrictFloat = 0.0
    n: StrictInt = 0
    asset: StrictStr = ""
    assettag: StrictStr = ""
    script_pub_key: ScriptPubKey = Field(default_factory=ScriptPubKey, alias="scriptPubKey")


class RawTransaction(Record):
    """Result of ``getrawtransaction`` (verbose) / ``decoderawtransaction``."""

    txid: StrictStr = ""
    hash: StrictStr = ""
    size: StrictInt = 0
    vsize: StrictInt = 0
    version: StrictInt = 0
    locktime: StrictInt = 0
    fee: StrictFloat = 0.0
    vin: list[Vin] = Field(default_factory=list)
    vout: list[Vout] = Field(default_factory=list)


class SignedTransaction(Record):
    """Result of ``signrawtransaction``."""

    hex: StrictStr = ""
    complete: StrictBool = False


RECORDS = {
    "validated-address": ValidatedAddress,
    "unspent-list": UnspentList,
    "wallet": Wallet,
    "raw-transaction": RawTransaction,
    "signed-transaction": SignedTransaction,
}


@lru_cache(maxsize=None)
def adapter_for(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def decode_record(target: Any, value: Any) -> Any:
    """Validate plain JSON ``value`` into ``target``; raises pydantic.ValidationError."""
    return adapter_for(target).validate_python(value)


def dump_record(target: Any, record: Any) -> Any:
    """Plain JSON form of a decoded record, using the daemon's key names."""
    return adapter_for(target).dump_python(record, by_alias=True, mode="json")


__all__ = [
    "Balance",
    "RECORDS",
    "RawTransaction",
    "Record",
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
]
