"""
Alta Parking Monitor - watches a parking reservation calendar and books a spot
"""
__version__ = "1.0.0"
