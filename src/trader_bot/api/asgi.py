"""ASGI entrypoint for the trader bot API."""

from trader_bot.api.app import create_app
from trader_bot.containers import build_container

app = create_app(build_container())
