"""
Error types raised by the reconstruction services.

All errors derive from :class:`GumlineError`, itself a ``ValueError``,
because every one of them describes bad caller input rather than an
internal failure.  The API layer maps the whole family to HTTP 400.

Geometric degeneracies (collinear triples, duplicate points) are not
represented here: the triangulator skips such triangles and carries on.
"""

from __future__ import annotations


class GumlineError(ValueError):
    """Base class for input errors raised by the reconstruction pipeline."""


class InvalidControlPointCount(GumlineError):
    """A control point set was built from a count other than five."""


class InsufficientSamplePoints(GumlineError):
    """The input cloud is too small for the requested statistic."""


class InvalidProfileParameter(GumlineError):
    """A profile parameter (``D``, ``alpha``, subdivisions) is out of range."""


class InsufficientPointsForHull(GumlineError):
    """Fewer than four points were supplied to hull meshing."""
