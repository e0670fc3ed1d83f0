from .report import (
    ReportCall,
    ReportTransactions,
    ReportAddresses,
    ReportQueries,
    ReportProjectConfig,
    ReportInputs,
    ScheduleReport,
)
from .explorer import ExplorerEnvelope, CandidateTransaction, LogEntry, TransactionReceipt

__all__ = [
    # Report
    "ReportCall",
    "ReportTransactions",
    "ReportAddresses",
    "ReportQueries",
    "ReportProjectConfig",
    "ReportInputs",
    "ScheduleReport",

    # Explorer
    "ExplorerEnvelope",
    "CandidateTransaction",
    "LogEntry",
    "TransactionReceipt",
]
