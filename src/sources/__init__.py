"""
Review sources for the TopBarks backend.

- GooglePlacesSource: reviews from the Google Places API (New)
"""
