"""
seatsplit - seat booking and pro-rata cost splitting for a shared rental car.
"""

__version__ = "0.1.0"
