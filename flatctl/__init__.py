"""Multirotor position and attitude controllers, quaternion helpers and a controller manager."""

__version__ = "0.1.0"