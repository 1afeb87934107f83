"""Test package for the Where to Move game.

Core tests drive the phase controller and map loader with fake clocks,
fetchers and libraries. The UI tests run headlessly using pygame's dummy
video driver to avoid opening real windows. To run these tests, execute
``pytest`` from the project root.
"""
