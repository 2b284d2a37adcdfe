"""Pydantic v2 schemas shared between core, API, and CLI."""

from .consensus import *  # noqa: F401,F403
from .decision import *  # noqa: F401,F403
from .projects import *  # noqa: F401,F403
