"""NiceGUI pages for featureboard.

Import this module to register all page routes with NiceGUI.
"""

from featureboard.pages import board

__all__ = ["board"]

# These imports register @ui.page decorators as a side effect.
_PAGES = (board,)
