"""
Stockyard — material lot transformation engine.

Cuts lots into pieces, joins lots end-to-end and fabricates angular piles
from raw stock, keeping length/mass conservation and flat provenance links
so any operation can be undone.
"""
