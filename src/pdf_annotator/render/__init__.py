"""Debug rendering of page layouts."""

from .visualizer import render_layout, save_layout_preview

__all__ = ["render_layout", "save_layout_preview"]
