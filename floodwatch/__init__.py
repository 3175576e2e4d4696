"""
FloodWatch Karachi
Community flood reporting: crowdsourced road conditions, live map and eco impact.
"""

__version__ = "0.2.0"
