"""
Games module - Built-in card sets.

Each set has its own subpackage with:
- Card designs
- Deck lists in the stored record shape
"""
