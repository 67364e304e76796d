"""Core timing engine: IR, timing lookup, edit history, animation, windowing.

WHY: These modules are the part of the engine that must stay numerically
consistent with the export renderer and responsive at frame rate. They are
pure and synchronous so they can be tested without a UI, network, or clock.

HOW: ir.py defines the transcript dataclasses, timing.py finds the active
segment/word, history.py applies and reverts edits, style.py and
animation.py compute per-word visual state, windowing.py decides which
rows of a long list to mount.

RULES:
- No module here performs I/O beyond reading its bundled JSON schema
- Current playback time is always an argument, never module state
"""
