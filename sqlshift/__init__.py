"""SQLShift — cached, scored Sybase → Oracle PL/SQL conversion."""

__version__ = "0.1.0"
