"""
Embeddings layer.

Responsibilities:
- Define the provider contract: text in, fixed-length float vector out.
- Call OpenAI (or a local sentence-transformer model) to embed tag text.
- Apply one retry policy to every provider call.
- Memoise embeddings of interned tag text across a batch run.
"""
