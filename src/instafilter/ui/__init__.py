"""
UI module - PySide6 window and widgets.
"""

from instafilter.ui.main_window import MainWindow

__all__ = ["MainWindow"]
