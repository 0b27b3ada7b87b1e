"""Game services: instances, question sets, progress and ranking.

Routes and socket handlers call into these modules; nothing here builds
HTTP responses.
"""
