"""
Review accumulation for the TopBarks backend.

Merges freshly fetched Google reviews into the cached set:
- dedup_key: identity fingerprint of a review
- merge_reviews / ReviewAccumulator: merge, dedup and order newest first
"""
