"""
rsaplan: static Routing and Spectrum Assignment planning for elastic
optical networks.
"""

__version__ = "0.1.0"
