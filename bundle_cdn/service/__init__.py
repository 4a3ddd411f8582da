"""Use-cases: root search, peer fallback and the request pipeline."""
