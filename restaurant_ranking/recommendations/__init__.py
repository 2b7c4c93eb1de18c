"""
Preference ranking.

Responsibilities:
- Validate user preference weights.
- Rank restaurants by a weighted sum of their persisted dimension scores.
- Rank restaurants by affinity to a vector built from the user's swipes.
- Keep equal-score restaurants in their input order.
"""
