"""Row and file helpers."""
