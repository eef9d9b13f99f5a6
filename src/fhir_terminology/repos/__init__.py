from .terminology_client import TerminologyClient, TerminologyProtocolError
from .terminology_registry import TerminologyRegistry

__all__ = ["TerminologyClient", "TerminologyProtocolError", "TerminologyRegistry"]
