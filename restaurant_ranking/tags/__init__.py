"""
Tag layer.

Responsibilities:
- Intern tags by (value, category) with get-or-create semantics.
- Attach tags to restaurants, restaurant images and reviews.
- Aggregate the effective tag set of a restaurant for one category.
"""
