"""Audio orchestration: uploads, cached speech and request coalescing."""

from .models import AudioDescriptor
from .orchestrator import AudioOrchestrator
from .singleflight import SingleFlight, SingleFlightStats

__all__ = ["AudioDescriptor", "AudioOrchestrator", "SingleFlight", "SingleFlightStats"]
