"""
slotbooker - calendar availability and meeting booking over CalDAV.
"""

__version__ = "0.1.0"
