"""
Downloadable resources for the TopBarks backend.

- catalog: default resource table, metadata merge and category grouping
- metadata: admin-edited categories and file overrides
- object_store: directory-backed bucket of PDFs
"""
