"""
Contact form for the TopBarks backend.

- contact_form: validation and logging of enquiries
- rate_limiter: fixed-window submission counter kept in the key-value store
"""
