"""Planar geometry helpers for plot and cemetery polygons.

Cemetery polygons span tens of meters, so latitude/longitude are treated as a flat plane everywhere
except edge-length measurement, which uses the haversine distance.
"""
