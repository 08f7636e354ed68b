"""Allow `python -m openplantbook`."""

from .composition import app

app()
