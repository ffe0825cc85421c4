"""
Evidence Report Service - Rental Evidence PDF Generator
=======================================================

A focused service for:
1. Grouping sealed rental photos by room and phase
2. Verifying content hashes before any drawing happens
3. Assembling court-presentable PDF reports (check-in, deposit pack, short-stay)

Authentication, checkout and email delivery live elsewhere.
"""

__version__ = "1.0.0"
