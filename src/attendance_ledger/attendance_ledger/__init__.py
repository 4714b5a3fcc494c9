"""Attendance Ledger package.

Feature modules (attendance, reports, tokens, employees, auth) each keep a
thin Flask controller layer on top of service/repository layers.
"""
