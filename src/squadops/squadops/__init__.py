"""Squad operations package.

Organized by feature modules (attendance, leaves, compliance, ...) with a thin
Flask controller layer on top of service/repository layers.
"""
