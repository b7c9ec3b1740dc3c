"""Hostel attendance package.

Organized by feature modules (sessions, attendance, reconciliation, users)
with a thin Flask controller layer over service/repository layers.
"""
