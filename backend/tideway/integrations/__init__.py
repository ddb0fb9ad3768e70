"""External tool integrations."""
from tideway.integrations.audio_decoder import AudioDecoder

__all__ = ["AudioDecoder"]
