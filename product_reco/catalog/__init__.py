"""
Product catalog.

Responsibilities:
- Load the product list from a JSON file once per process.
- Expose read-only lookups (all products, by id, by category).
"""
