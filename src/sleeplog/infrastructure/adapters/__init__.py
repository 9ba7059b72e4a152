# Infrastructure Adapters Package
from .anthropic_reasoning import AnthropicReasoningProvider
from .csv_ledger import CsvEventLedger
from .json_store import JsonDocumentStore

__all__ = ["AnthropicReasoningProvider", "CsvEventLedger", "JsonDocumentStore"]
