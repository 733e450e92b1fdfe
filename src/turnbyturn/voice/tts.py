# tts.py
# Offline voice output backed by pyttsx3.
# Each utterance runs in a child process so it can be cut off by the next one.

import logging
import subprocess
import sys
import threading
from typing import Optional

logger = logging.getLogger(__name__)


_SCRIPT = """\
import pyttsx3
engine = pyttsx3.init()
engine.setProperty('rate', {rate})
engine.setProperty('volume', 1.0)
wanted = {locale!r}.lower().replace('-', '_')
for v in engine.getProperty('voices'):
    langs = [l.decode(errors='ignore') if isinstance(l, bytes) else str(l) for l in (v.languages or [])]
    tags = [t.lower().replace('-', '_') for t in langs + [v.id or '']]
    if any(wanted in t or wanted.split('_')[0] == t for t in tags):
        engine.setProperty('voice', v.id)
        break
engine.say({text!r})
engine.runAndWait()
"""


class Pyttsx3Voice:
    """
    Voice-output collaborator for NavigationSession.

    speak() interrupts whatever is still playing, so stale instructions never
    queue up behind fresh ones.
    """

    def __init__(self) -> None:
        self._proc: Optional[subprocess.Popen] = None
        self._lock = threading.Lock()

    def speak(self, text: str, locale: str = "en-US", rate: int = 165) -> None:
        text = (text or "").strip()
        if not text:
            return
        script = _SCRIPT.format(rate=int(rate), locale=locale, text=text)
        with self._lock:
            self._terminate()
            try:
                self._proc = subprocess.Popen([sys.executable, "-c", script])
            except OSError as e:
                self._proc = None
                logger.error(f"TTS failed to start: {e}")

    def stop(self) -> None:
        with self._lock:
            self._terminate()

    def is_speaking(self) -> bool:
        with self._lock:
            return self._proc is not None and self._proc.poll() is None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the current utterance finishes.

        Returns:
            True when nothing is playing any more.
        """
        with self._lock:
            proc = self._proc
        if proc is None:
            return True
        try:
            proc.wait(timeout=timeout)
            return True
        except subprocess.TimeoutExpired:
            return False

    def _terminate(self) -> None:
        proc, self._proc = self._proc, None
        if proc is None or proc.poll() is not None:
            return
        proc.terminate()
        try:
            proc.wait(timeout=1.0)
        except subprocess.TimeoutExpired:
            proc.kill()
