"""Allows running Keyresolve with python -m keyresolve"""
from .cli import main

main()
