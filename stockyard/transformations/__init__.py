"""
Transformation kinds — one class per server transformation type.

Each kind knows which source lots it may draw from given the current
selection, and what composite lot (if any) the selection would produce.
The session dispatches through the registry instead of switching on the
integer type code.
"""
