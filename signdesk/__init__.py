"""
SignDesk: markup, signature placement and approval routing for office PDFs.
"""
__version__ = "0.1.0"
