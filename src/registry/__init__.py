"""
Review Store - single source of truth for cached reviews.
"""
