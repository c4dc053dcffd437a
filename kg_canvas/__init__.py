"""
Paper relationship canvas: papers, their concepts and how they relate.
"""

__version__ = "0.1.0"
