"""
Pydantic schemas for the exported schedule report.
Only the parts the tooling reads are modelled; everything else is ignored.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field

class ReportCall(BaseModel):
    """One decoded contract call inside a report transaction group."""
    function_signature: str = Field(alias="functionSignature")
    input_values: List[Any] = Field(default_factory=list, alias="inputValues")

    model_config = ConfigDict(populate_by_name=True, extra="ignore", json_schema_extra={
        "example": {
            "functionSignature": "pushPayment(address,address,uint256,uint256,uint256,uint256)",
            "inputValues": [
                "0x1111111111111111111111111111111111111111",
                "0x2222222222222222222222222222222222222222",
                "1000000000000000000",
                "1700000000",
                "0",
                "1731536000"
            ]
        }
    })

class ReportTransactions(BaseModel):
    readable: List[List[ReportCall]]

    model_config = ConfigDict(extra="ignore")

class ReportAddresses(BaseModel):
    payment_router: Optional[str] = Field(None, alias="paymentRouter")
    issuance_token: Optional[str] = Field(None, alias="issuanceToken")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

class ReportQueries(BaseModel):
    addresses: Optional[ReportAddresses] = None

    model_config = ConfigDict(extra="ignore")

class ReportProjectConfig(BaseModel):
    safe: Optional[str] = Field(None, alias="SAFE")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

class ReportInputs(BaseModel):
    project_config: Optional[ReportProjectConfig] = Field(None, alias="projectConfig")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

class ScheduleReport(BaseModel):
    """Top-level report: `{transactions: {readable: [[call, ...], ...]}, ...}`."""
    transactions: ReportTransactions
    project_name: Optional[str] = Field(None, alias="projectName")
    queries: Optional[ReportQueries] = None
    inputs: Optional[ReportInputs] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
