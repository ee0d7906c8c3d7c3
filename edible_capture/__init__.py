"""Synthetic YOLO label capture from 3D scenes."""

__version__ = "0.1.0"
