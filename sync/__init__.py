"""Sync engines producing entertainment frames.

This package contains:
- base: SyncEngine with parameters, timers and frame sending
- screen: ScreenSync (screen colour at each channel position)
- music: MusicSync (audio spectrum bands to colours)
- cursor: CursorSync (colour under the pointer)
- samplers: Interfaces of the screen, pointer and spectrum sources
"""
