"""
Scripts module - skrypty umiejętności.

Import modułu rejestruje jego HandlerRegistry w SCRIPT_REGISTRY.

Zawiera:
- frag_grenade: Granat z wybuchem obszarowym
"""

from . import frag_grenade

__all__ = ["frag_grenade"]
