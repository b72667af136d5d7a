"""Search intent parsing and validation.

The intent layer converts a free-text grave search ("my grandmother Maria who died in 1990") into a
validated `SearchIntent`, which is then used to build a parameterized search query.
"""
