from .harmonics import HarmonicSeasonality
from .periodogram import Periodogram

__all__ = ["HarmonicSeasonality", "Periodogram"]
