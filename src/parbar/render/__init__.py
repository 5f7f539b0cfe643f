"""
Rendering of the progress line and erase strategies.
"""

from .renderer import Renderer, RenderState
from .erase import AnsiEraser, BackspaceEraser, select_eraser

__all__ = ['Renderer', 'RenderState', 'AnsiEraser', 'BackspaceEraser', 'select_eraser']
