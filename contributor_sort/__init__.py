"""Contributor-tenure sorting of pull request listings.

- extract.py:  PR numbers from listing links, listing URL context
- classify.py: author association -> tier / badge
- order.py:    stable sort by tier, restore original order
- session.py:  sort trigger contract and persisted settings
- render.py:   renderer interface + text renderer
"""
