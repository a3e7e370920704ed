#!filepath: lanetrace/__main__.py
from lanetrace.cli import run

run()
