"""Laneselect core library: route table building, record routing and expressions."""
from . import errors
from . import models
from . import schemas
from . import expression
from . import routing
from . import stage
from . import config

__all__ = [
    "errors",
    "models",
    "schemas",
    "expression",
    "routing",
    "stage",
    "config",
]
