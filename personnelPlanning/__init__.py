"""
Personnel Planning - personnelPlanning Package

A Flask-based service that distributes personnel into capacity-bounded teams
using ordered assignment rules, history-aware balanced filling and an
optional advisory language model.
"""

__version__ = "1.0.0"
__author__ = "Personnel Planning Team"

# Package-level imports for easier access
from .app import create_app

__all__ = ['create_app']
