"""
Restaurant ranking and personalization engine.

Responsibilities:
- Aggregate category tags reachable from a restaurant (direct, images, reviews).
- Embed tags and score restaurants against curated ideal profiles.
- Rank restaurants for a user by weighted preferences or swipe-derived vectors.
- Drive scoring over the whole restaurant collection in bounded batches.
"""
