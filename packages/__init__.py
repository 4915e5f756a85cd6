"""Shared fleet packages.

Domain models here are imported by the web app and by any future batch
jobs, so they stay free of Flask and database concerns.
"""
