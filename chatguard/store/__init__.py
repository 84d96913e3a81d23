"""Document storage: the single point of shared mutable state.

Backends expose a small Mongo-flavoured interface (find / insert / atomic
single-document update) so the engine stays storage-agnostic.
"""
