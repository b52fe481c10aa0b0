"""
Recommendation engine.

Responsibilities:
- Warm and hold one embedding per catalog product.
- Retrieve the products most similar to a user query.
- Re-rank and explain candidates through the generative provider, or
  deterministically when it is unavailable.
- Guarantee a usable list for every well-formed query.
"""
