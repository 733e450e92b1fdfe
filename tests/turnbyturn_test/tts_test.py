import subprocess

import pytest

from turnbyturn.voice import tts
from turnbyturn.voice.tts import Pyttsx3Voice


class FakeProcess:
    def __init__(self, args):
        self.args = args
        self.running = True
        self.terminated = False

    def poll(self):
        return None if self.running else 0

    def terminate(self):
        self.terminated = True
        self.running = False

    def kill(self):
        self.running = False

    def wait(self, timeout=None):
        if self.running:
            raise subprocess.TimeoutExpired(self.args, timeout)
        return 0


@pytest.fixture
def processes(monkeypatch):
    started = []

    def fake_popen(args):
        proc = FakeProcess(args)
        started.append(proc)
        return proc

    monkeypatch.setattr(tts.subprocess, "Popen", fake_popen)
    return started


def test_speak_runs_pyttsx3_script(processes):
    voice = Pyttsx3Voice()
    voice.speak("Turn left", "en-US", 150)

    assert len(processes) == 1
    script = processes[0].args[-1]
    assert "pyttsx3" in script
    assert "'Turn left'" in script
    assert "setProperty('rate', 150)" in script
    assert voice.is_speaking()


def test_new_utterance_interrupts_current(processes):
    voice = Pyttsx3Voice()
    voice.speak("In 500 meters, turn left")
    voice.speak("Turn left")

    assert processes[0].terminated
    assert not processes[1].terminated


def test_stop_and_wait(processes):
    voice = Pyttsx3Voice()
    voice.speak("Recalculating.")
    assert not voice.wait(timeout=0.01)

    voice.stop()
    assert processes[0].terminated
    assert not voice.is_speaking()
    assert voice.wait()


def test_blank_text_is_not_spoken(processes):
    Pyttsx3Voice().speak("   ")
    assert processes == []


def test_start_failure_is_logged_not_raised(monkeypatch):
    def broken(args):
        raise OSError("no interpreter")

    monkeypatch.setattr(tts.subprocess, "Popen", broken)
    voice = Pyttsx3Voice()
    voice.speak("Turn right")
    assert not voice.is_speaking()
