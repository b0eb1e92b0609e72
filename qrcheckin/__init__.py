# =======================================================================================
# qrcheckin/__init__.py - Package Initialization
# =======================================================================================
"""
QR Check-In - Registration Token Issuance and Verification

Issues each registrant a scannable QR token and verifies it at check-in
stations, either from a live camera loop or from uploaded images.
"""

__version__ = "1.0.0"
__author__ = "QR Check-In Team"
