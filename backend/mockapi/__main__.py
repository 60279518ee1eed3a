"""Entry point for ``python -m mockapi``."""
from mockapi.cli import app

app(prog_name="mockapi")
