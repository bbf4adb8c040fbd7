"""Chat channels module."""

from chronicler.channels.base import BaseChannel

__all__ = ["BaseChannel"]
