"""
Module containing the load/dump code for the .osu text format
"""
from .dump import dump_beatmap
from .load import load_beatmap_text
