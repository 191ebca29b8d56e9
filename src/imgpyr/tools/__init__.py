# ignore F401 (unused import) and F403 (import * is bad practice)
# ruff: noqa:  F401, F403
from . import validate
from .conv import *
from .data import *
from .signal import *
