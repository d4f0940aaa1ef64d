"""HTTP routes of the functions service"""
