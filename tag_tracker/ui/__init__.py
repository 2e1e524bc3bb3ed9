# ui/__init__.py
# Version 1.0 - Affichage OpenCV et rapport console

from .presenter import ConsoleReporter, DisplayWindow

__all__ = ['ConsoleReporter', 'DisplayWindow']
