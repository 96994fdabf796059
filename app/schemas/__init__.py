# ruff: noqa: F403, F401
"""Schemas package initialization."""

from .attachment import *
from .base import *
from .cuisine_type import *
from .recipe import *
from .user import *
