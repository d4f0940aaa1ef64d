"""
Shared schemas and utilities for HotLunchHub
"""
