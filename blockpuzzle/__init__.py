# File: blockpuzzle/__init__.py
"""Reinforcement learning playground for a 9x9 block placement puzzle."""

__version__ = "0.1.0"
