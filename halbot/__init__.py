"""
halbot - a HAL-style chatbot with a HipChat adapter.
"""

__version__ = "0.1.0"
