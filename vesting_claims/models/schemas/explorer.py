"""
Pydantic schemas for Etherscan-compatible block-explorer responses.
Numeric fields arrive as decimal strings and are coerced to int.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field

class ExplorerEnvelope(BaseModel):
    """`module=account` style response: status "1" on success."""
    status: Optional[str] = None
    message: Optional[str] = None
    result: Any = None

    model_config = ConfigDict(extra="ignore")

    @property
    def ok(self) -> bool:
        return self.status == "1"

class CandidateTransaction(BaseModel):
    """A transaction sent to the payment router, as listed by `txlist`."""
    hash: str
    from_address: str = Field(alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    block_number: int = Field(alias="blockNumber", ge=0)
    timestamp: int = Field(alias="timeStamp", ge=0)
    is_error: str = Field("0", alias="isError")

    model_config = ConfigDict(populate_by_name=True, extra="ignore", json_schema_extra={
        "example": {
            "hash": "0x5c50...",
            "from": "0x1111111111111111111111111111111111111111",
            "to": "0x2559c4e77131313bbbecfa99af51cdb4b7e9cb8a",
            "blockNumber": "61234567",
            "timeStamp": "1722470400",
            "isError": "0"
        }
    })

    @property
    def succeeded(self) -> bool:
        return self.is_error == "0"

class LogEntry(BaseModel):
    """Single event log inside a receipt."""
    address: str
    topics: List[str] = Field(default_factory=list)
    data: str = "0x"

    model_config = ConfigDict(extra="ignore")

class TransactionReceipt(BaseModel):
    transaction_hash: Optional[str] = Field(None, alias="transactionHash")
    status: Optional[str] = None
    logs: List[LogEntry] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
