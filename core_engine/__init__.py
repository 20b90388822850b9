"""GlobeMesh — Core Engine Package.

Coordinate conversion, Fibonacci sphere sampling, south-pole rotation and
constrained triangulation of geographic polygons on the unit sphere.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)
"""
