"""Oracle adapters over hosted LLM providers."""

from .adapter import OracleAdapter
from .credentials import CredentialStore
from .runner import LLMRequest, LLMRunner, OracleError

__all__ = ["CredentialStore", "LLMRequest", "LLMRunner", "OracleAdapter", "OracleError"]
