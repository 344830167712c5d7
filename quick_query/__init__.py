"""
Quick Query — resolution engine for a launcher's "ask-anything" search bar.

Architecture: Normalizer → Calculator | Color | Units | Currency (priority order) → QuickResult
Philosophy:  Guess only when the guess is cheap to correct. Never throw at the UI.
"""

__version__ = "1.0.0"
