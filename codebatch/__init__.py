"""Bounded-size batching of source trees for staged documentation."""
