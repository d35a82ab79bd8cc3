import os

ALLOWED_AUDIO_TYPES = frozenset({
    "audio/mpeg",
    "audio/mp3",
    "audio/wav",
    "audio/x-m4a",
})

UPLOAD_CHUNK_SIZE = 8 * 1024 * 1024


def is_allowed_audio_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.split(";", 1)[0].strip().lower() in ALLOWED_AUDIO_TYPES


def audio_extension(filename: str | None, default: str = ".mp3") -> str:
    if filename:
        ext = os.path.splitext(filename)[1]
        if ext:
            return ext.lower()
    return default


def format_seconds(value: float) -> str:
    """Render a time offset without a trailing '.0' for whole seconds."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)
