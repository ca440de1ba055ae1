"""Test package for the Simon memory game.

Core tests drive the round state machine, playback timeline and sector
geometry with a fake clock; smoke tests run the pygame shell headlessly
using SDL's dummy video/audio drivers. Run ``pytest`` from the project root.
"""
