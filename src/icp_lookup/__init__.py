"""ICP registration lookup via icp.chinaz.com"""

__version__ = "0.1.0"
