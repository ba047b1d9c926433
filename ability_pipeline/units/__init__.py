"""
Units module - aktorzy świata.

Zawiera:
- Actor: Aktor z pozycją, flagami ważności i pulami zasobów
- ActorRef: Słaba referencja (ID) rozwiązywana w momencie użycia
"""

from .actor import Actor, ActorRef

__all__ = ["Actor", "ActorRef"]
