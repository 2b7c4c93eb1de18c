"""
Batch scoring.

Responsibilities:
- Page through every restaurant and score it against one profile.
- Bound concurrent embedding traffic within a page; keep pages sequential.
- Isolate per-restaurant failures and report aggregate counts.
- Stop cleanly between pages on request.

Usage:
    python -m restaurant_ranking.batch --snapshot data/restaurants.json
"""
