"""
Data models for the Builder Relayer SDK.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RelayerTxType(str, Enum):
    """Smart-contract wallet style used to relay transactions."""
    SAFE = "SAFE"
    PROXY = "PROXY"


class TransactionType(str, Enum):
    """Value of the ``type`` tag in a submitted TransactionRequest."""
    SAFE = "SAFE"
    PROXY = "PROXY"
    SAFE_CREATE = "SAFE-CREATE"


class OperationType(IntEnum):
    """Safe operation kind."""
    CALL = 0
    DELEGATE_CALL = 1


class CallType(IntEnum):
    """Proxy wallet call kind."""
    INVALID = 0
    CALL = 1
    DELEGATE_CALL = 2


class RelayerTransactionState(str, Enum):
    STATE_NEW = "STATE_NEW"
    STATE_EXECUTED = "STATE_EXECUTED"
    STATE_MINED = "STATE_MINED"
    STATE_INVALID = "STATE_INVALID"
    STATE_CONFIRMED = "STATE_CONFIRMED"
    STATE_FAILED = "STATE_FAILED"


def _value_to_str(value: Union[int, str, None]) -> str:
    if value is None or value == "":
        return "0"
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class Transaction(BaseModel):
    """A single call the caller wants the wallet to make"""
    to: str
    data: str = "0x"
    value: str = "0"

    @field_validator("value", mode="before")
    @classmethod
    def _normalize_value(cls, v: Any) -> str:
        return _value_to_str(v)


class SafeTransaction(BaseModel):
    to: str
    operation: OperationType = OperationType.CALL
    data: str = "0x"
    value: str = "0"

    @field_validator("value", mode="before")
    @classmethod
    def _normalize_value(cls, v: Any) -> str:
        return _value_to_str(v)


class ProxyTransaction(BaseModel):
    to: str
    type_code: CallType = Field(CallType.CALL, alias="typeCode")
    data: str = "0x"
    value: str = "0"

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("value", mode="before")
    @classmethod
    def _normalize_value(cls, v: Any) -> str:
        return _value_to_str(v)


class SignatureParams(BaseModel):
    """
    Style-specific parameters the relayer needs to verify a signature.

    Unset fields are omitted from the JSON body.
    """
    gas_price: Optional[str] = Field(None, alias="gasPrice")

    # Proxy relay hub params
    relayer_fee: Optional[str] = Field(None, alias="relayerFee")
    gas_limit: Optional[str] = Field(None, alias="gasLimit")
    relay_hub: Optional[str] = Field(None, alias="relayHub")
    relay: Optional[str] = None

    # Safe params
    operation: Optional[str] = None
    safe_txn_gas: Optional[str] = Field(None, alias="safeTxnGas")
    base_gas: Optional[str] = Field(None, alias="baseGas")
    gas_token: Optional[str] = Field(None, alias="gasToken")
    refund_receiver: Optional[str] = Field(None, alias="refundReceiver")

    # Safe create params
    payment_token: Optional[str] = Field(None, alias="paymentToken")
    payment: Optional[str] = None
    payment_receiver: Optional[str] = Field(None, alias="paymentReceiver")

    model_config = ConfigDict(populate_by_name=True)


class TransactionRequest(BaseModel):
    """Signed request body for POST /submit"""
    type: TransactionType
    from_address: str = Field(..., alias="from")
    to: str
    proxy_wallet: Optional[str] = Field(None, alias="proxyWallet")
    data: str
    nonce: Optional[str] = None
    signature: str
    signature_params: SignatureParams = Field(default_factory=SignatureParams, alias="signatureParams")
    metadata: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """
        Serialize to the exact string sent to the relayer.

        The same string is signed for builder attribution, so it must not be
        re-serialized between signing and sending.
        """
        return json.dumps(self.to_payload(), separators=(",", ":"))


class NoncePayload(BaseModel):
    nonce: str = ""

    @field_validator("nonce", mode="before")
    @classmethod
    def _normalize_nonce(cls, v: Any) -> str:
        return "" if v is None else str(v)


class RelayPayload(BaseModel):
    address: str = ""
    nonce: str = ""

    @field_validator("nonce", mode="before")
    @classmethod
    def _normalize_nonce(cls, v: Any) -> str:
        return "" if v is None else str(v)


class GetDeployedResponse(BaseModel):
    deployed: bool = False


class RelayerTransaction(BaseModel):
    """Relayer-side record of a submitted transaction"""
    transaction_id: str = Field("", alias="transactionID")
    transaction_hash: str = Field("", alias="transactionHash")
    from_address: str = Field("", alias="from")
    to: str = ""
    proxy_address: str = Field("", alias="proxyAddress")
    data: str = ""
    nonce: str = ""
    value: str = ""
    state: str = ""
    type: str = ""
    metadata: str = ""
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("nonce", "value", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        return "" if v is None else str(v)

    # Fields the relayer sends as null before the transaction is broadcast
    @field_validator(
        "transaction_id", "transaction_hash", "from_address", "to", "proxy_address",
        "data", "state", "type", "metadata", mode="before",
    )
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class RelayerTransactionResponse(BaseModel):
    transaction_id: str = Field("", alias="transactionID")
    state: str = ""
    hash: str = ""
    transaction_hash: str = Field("", alias="transactionHash")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("transaction_id", "state", "hash", "transaction_hash", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


@dataclass
class SafeTransactionArgs:
    from_address: str
    nonce: str
    chain_id: int
    transactions: List[SafeTransaction] = field(default_factory=list)


@dataclass
class SafeCreateTransactionArgs:
    from_address: str
    chain_id: int
    payment_token: str
    payment: str
    payment_receiver: str


@dataclass
class ProxyTransactionArgs:
    from_address: str
    nonce: str
    gas_price: str
    data: str
    relay: str
    gas_limit: str = ""


@dataclass(frozen=True)
class AggregatedTransaction:
    """A batch of calls reduced to the single call the wallet executes."""
    to: str
    data: str
    value: str
    operation: int
