from .google_fit import GoogleFitProvider
from .memory import CallbackSink, InMemoryCapabilityStore, InMemoryProvider, RecordingSink

__all__ = [
    "CallbackSink",
    "GoogleFitProvider",
    "InMemoryCapabilityStore",
    "InMemoryProvider",
    "RecordingSink",
]
