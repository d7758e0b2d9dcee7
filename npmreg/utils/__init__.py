"""
Utility functions used across the npmreg package
"""
from .logging import blab
