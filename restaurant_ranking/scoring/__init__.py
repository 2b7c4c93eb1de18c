"""
Scoring layer.

Responsibilities:
- Vector averaging and cosine similarity with explicit zero-vector rules.
- Map raw cosine similarity from [-1, 1] onto a [0, 1] affinity score.
- Score a restaurant's aggregated tags against a curated ideal profile.
"""
