from __future__ import annotations

import logging
from typing import Optional

import sounddevice as sd

from .mixing import Mixer


logger = logging.getLogger(__name__)


class MixerOutput:
    """
    Plays a Mixer through the default output device.

    The sounddevice callback runs on the audio thread and only calls `Mixer.render`.
    """

    def __init__(self, mixer: Mixer, blocksize: int = 512) -> None:
        self.mixer = mixer
        self.blocksize = blocksize
        self._stream: Optional[sd.OutputStream] = None

    def start(self) -> None:
        """Start the audio stream."""
        if self._stream is not None:
            return

        self._stream = sd.OutputStream(
            samplerate=self.mixer.sample_rate,
            channels=1,
            dtype="float32",
            callback=self._audio_callback,
            blocksize=self.blocksize,
        )
        self._stream.start()
        logger.info("audio output started (%d Hz, block %d)", self.mixer.sample_rate, self.blocksize)

    def stop(self) -> None:
        """Stop the audio stream."""
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        finally:
            self._stream = None

    def _audio_callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.warning("audio stream status: %s", status)
        outdata[:, 0] = self.mixer.render(frames)

    def __enter__(self) -> "MixerOutput":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
