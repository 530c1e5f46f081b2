"""
Bundled data files
"""
