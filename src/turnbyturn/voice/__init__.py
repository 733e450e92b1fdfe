from .tts import Pyttsx3Voice

__all__ = ["Pyttsx3Voice"]
