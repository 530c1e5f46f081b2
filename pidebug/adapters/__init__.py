"""
Adapters layer
"""
