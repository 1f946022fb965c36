"""
logyard: discover log files on a host and stream their live tails to browsers.
"""
__version__ = "0.3.0"
