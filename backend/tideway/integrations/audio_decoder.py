"""Duration extraction for assembled audio assets."""
import logging
from pathlib import Path

from tideway.exceptions import DecodeError
from tideway.utils.duration import DurationTriple

logger = logging.getLogger(__name__)


class AudioDecoder:
    """Reads stream info from an audio file with mutagen.

    Only the container/stream headers are parsed; nothing is transcoded.
    """

    def decode(self, path: Path) -> DurationTriple:
        """Return the playback duration of the asset at ``path``.

        Raises:
            DecodeError: File is not a recognizable audio stream or has no length.
        """
        import mutagen
        from mutagen import MutagenError

        try:
            audio = mutagen.File(str(path))
        except MutagenError as e:
            raise DecodeError(f"Unreadable audio stream: {e}") from e

        if audio is None or audio.info is None:
            raise DecodeError(f"Unrecognized audio format: {Path(path).name}")

        length = getattr(audio.info, "length", None)
        if not length or length <= 0:
            raise DecodeError(f"Audio stream has no duration: {Path(path).name}")

        logger.debug(f"Decoded {path}: {length:.3f}s")
        return DurationTriple.from_seconds(length)
