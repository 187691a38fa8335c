"""Scene hierarchies, chunked binary I/O, PNG/WAV loading, audio mixing and viewer camera controls."""

__version__ = "0.1.0"
__all__ = ["chunks", "data_path", "png_io", "wav", "linalg", "scene", "sound", "viewer"]