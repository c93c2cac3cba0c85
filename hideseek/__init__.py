"""
Hideseek - Hide & Seek Session Engine

An authoritative session engine for a location-based hide and seek game.
One hider, many seekers, one shared session record. The engine provides:
- Role assignment (first join wins the hider slot)
- Card draw/play (time bonuses, curses, powerups)
- Question lifecycle (request -> pending -> answered/expired)
- Location ingestion and the question/answer chat log
"""

__version__ = "0.1.0"
