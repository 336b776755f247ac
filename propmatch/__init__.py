"""Deal-to-property matching, deal lifecycle and listing quality core."""

__version__ = "1.0.0"
