"""Contributor-record fetch strategies with caching.

Each module in this package owns:
- the API calls for one strategy (via GitHubAPIClient)
- the normalization of the API payload into ContributorRecord
- the cache writes for the records it obtains

contributor_fetch.py chooses between them and owns the GraphQL -> REST fallback.
"""
