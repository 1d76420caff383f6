"""
Utility modules for the TopBarks backend.

Cross-cutting concerns:
- Storage: key-value persistence for cached documents
- Auth: admin password check and signed session tokens
"""
