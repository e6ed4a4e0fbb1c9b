# =======================================================================================
# app/__init__.py - Package Initialization
# =======================================================================================
"""
RFID Access Cache

Keeps a local door/machine access cache for RFID readers in sync with the
Wild Apricot membership directory, so a scan never waits on the directory.
"""

__version__ = "1.0.0"
__author__ = "RFID Access Control Team"
