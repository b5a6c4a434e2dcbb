"""
Order Portal API

Order lifecycle tracking, per-order activity logs and contract signing for
the robotics sales and installation team.
"""

__version__ = "0.1.0"
