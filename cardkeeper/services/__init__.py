"""
Cardkeeper services.

Scryfall client, rate limiting and the Scryfall and Moxfield import runs.
Import from the submodules directly.
"""
