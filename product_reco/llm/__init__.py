"""
Generative provider integration.

Responsibilities:
- Hold the provider endpoint, credentials and model identifiers.
- Build the ranking prompt from the user query and candidate products.
- Send a single-turn chat completion through the Groq client and return the
  raw text for the ranker to parse.
"""
