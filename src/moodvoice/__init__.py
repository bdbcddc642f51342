"""moodvoice - emotion-aware text-to-speech with a content-addressed cache."""

__version__ = "0.1.0"
__all__ = ["AudioDescriptor", "AudioOrchestrator"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name in __all__:
        from . import audio

        return getattr(audio, name)
    raise AttributeError(f"module 'moodvoice' has no attribute {name!r}")
