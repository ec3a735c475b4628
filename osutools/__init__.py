"""Read, edit and write osu! beatmap files (.osu)

    >>> import osutools
    >>> beatmap = osutools.open("song.osu")
    >>> beatmap.metadata.title = "New title"
    >>> osutools.save(beatmap, "song.osu")
"""
from . import errors
from .beatmap import Beatmap
from .files import open_beatmap as open
from .files import save_beatmap as save
from .format import load_beatmap_text as parse
from .version import __version__
