"""
spot-export: bulk-export Spotify tracks, albums, playlists and podcasts into
local Ogg Vorbis files.
"""

__version__ = "0.3.0"
